"""edgeport: convert Deno edge functions into Node server handlers."""

__version__ = "0.1.0"
