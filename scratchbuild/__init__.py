"""scratchbuild - build container images FROM scratch without a Dockerfile."""

__version__ = "0.1.0"
