"""qwikgen - scaffolding generators for Qwik libraries in Nx-style workspaces."""

__version__ = "0.1.0"
