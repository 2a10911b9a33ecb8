"""
Quadvote Package

Core imports are lazily loaded so that importing a submodule does not pull
in the whole package. For direct module access, import from submodules:

    from quadvote.governance import VotingEngine, isqrt
    from quadvote.config import EngineConfig
    from quadvote.persist import save_snapshot, load_snapshot
"""

__version__ = "0.1.0"


def __getattr__(name):
    """Lazy module loading."""
    if name == 'VotingEngine':
        from .governance import VotingEngine
        return VotingEngine
    elif name == 'EngineConfig':
        from .config import EngineConfig
        return EngineConfig
    elif name == 'GovernanceError':
        from .governance import GovernanceError
        return GovernanceError
    raise AttributeError(f"module 'quadvote' has no attribute {name!r}")

__all__ = ['VotingEngine', 'EngineConfig', 'GovernanceError']
