# CertiChain Test Suite
"""
Test suite including:
- Unit tests (hashing, blocks, validation, repair)
- Security tests (tamper and forgery scenarios)
- Integration tests (ledger store, audit trail, narrator)

Run with: pytest
Coverage: coverage run -m pytest && coverage report
"""
