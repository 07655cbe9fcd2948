"""OKR coaching core: phase-gated conversation state machine with content-quality gating."""

__version__ = "0.1.0"
