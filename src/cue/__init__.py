"""cue - scheduled music assignment for Soundtrack playback zones."""

__version__ = "0.1.0"
