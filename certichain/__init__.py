"""
CertiChain - tamper-evident ledger of academic certificates.

Subpackages:
- core_crypto: canonical content hashing and avalanche measurement
- blockchain: blocks, factory, validator, repairer, tamper simulator, store
- integration: audit event log and audit narrative collaborators
"""

__version__ = "1.0.0"
