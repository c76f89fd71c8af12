"""
Dialectics - Structured Disagreement Resolution

A dialectical elimination engine: candidate solutions, hypotheses, or
definitions are put under explicit adversarial pressure, survive or are
eliminated by auditable rules, and are gated by proof obligations before
any conclusion is adopted.
"""

__version__ = "0.1.0"

# Configuration is available at top level for convenience
from dialectics.config import config

__all__ = ["config", "__version__"]
