"""serpwright - Google search automation with headless-to-headed challenge escalation."""

__version__ = "0.3.0"
