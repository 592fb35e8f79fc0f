"""Generation of pseudo-device identifiers presented to the store."""

import secrets


def generate_device_identifier() -> str:
    """Returns a random MAC-style identifier, e.g. ``3C22FB1A9D0E``."""
    return secrets.token_hex(6).upper()
