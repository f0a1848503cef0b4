"""Quiz interaction, grading and progress persistence for lesson steps."""

__version__ = "0.1.0"
