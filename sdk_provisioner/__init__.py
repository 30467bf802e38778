"""SDK host provisioner (Python-first, checkpoint-driven).

Core design goals:
- Resumable: completed steps are checkpointed and never redone
- Fail-fast: the first failing step aborts the run
- Steps run under an explicit identity (root or the SDK user)
- Centralized logging
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
