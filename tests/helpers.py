"""Builders shared by the test modules."""

from certichain.blockchain.records import CertificateRecord


FIXED_TIME = "2024-06-01T12:00:00.000Z"


def make_cert(name="Alice Johnson", degree="B.Sc. Computer Science", gpa="3.8"):
    return CertificateRecord(
        student_name=name,
        degree=degree,
        university="University of Technology",
        graduation_date="2024-05-30",
        gpa=gpa,
        issuance_date=FIXED_TIME,
    )


def build_chain(factory, count):
    """Genesis plus count certificate blocks."""
    chain = [factory.create_genesis()]
    for i in range(count):
        chain.append(factory.create_next(chain, make_cert(f"Student {i}", f"Degree {i}")))
    return chain
