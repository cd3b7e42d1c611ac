# Creative Scribe: multi-provider generation service and its streaming client.

__version__ = "0.3.0"
