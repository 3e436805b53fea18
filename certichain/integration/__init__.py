# Integration Module
"""
Collaborators around the ledger core:
- event_logger: audit trail of ledger operations (privacy-preserving labels)
- narrator: audit narrative generation with graceful degradation
"""

_EXPORTS = {
    'LedgerEventType': 'event_logger',
    'LedgerEvent': 'event_logger',
    'LedgerEventLog': 'event_logger',
    'get_label_hash': 'event_logger',
    'ChainSummary': 'narrator',
    'SummaryEntry': 'narrator',
    'Narrator': 'narrator',
    'NarratorError': 'narrator',
    'TemplateNarrator': 'narrator',
    'GeminiNarrator': 'narrator',
    'build_summary': 'narrator',
    'default_narrator': 'narrator',
    'generate_audit_report': 'narrator',
    'explain_concept': 'narrator',
}


# Lazy imports to keep the ledger core importable on its own
def __getattr__(name):
    """Resolve exported names from their submodule on first access."""
    if name not in _EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    from importlib import import_module
    module = import_module(f".{_EXPORTS[name]}", __name__)
    return getattr(module, name)


__all__ = list(_EXPORTS)
