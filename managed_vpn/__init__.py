"""Keep the device's default VPN profile in step with managed restrictions."""

__version__ = "1.0.0"
