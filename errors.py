# errors.py
"""
Exception types raised by the entropy engine and the placement sampler.

Two fatal categories exist:
- ConfigurationError: invalid construction-time parameters. Raised immediately,
  never silently clamped.
- ContractViolation: malformed runtime input from an upstream collaborator
  (negative cell counts, mismatched position/color streams). Raised
  synchronously to the caller of the current tick.

Recoverable conditions (sampler budget exhaustion, Smax == 0) are not
exceptions; they are absorbed by the component that encounters them.
"""


class ConfigurationError(ValueError):
    """Invalid construction-time configuration."""


class ContractViolation(RuntimeError):
    """Upstream data broke the engine's input contract."""
