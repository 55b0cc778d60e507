"""A model of a virtual microcontroller board, its views and sketch build preparation."""

__version__ = "0.1.0"

__all__ = [
    "board_data",
    "board_view",
    "config",
    "device_spec",
    "device_view",
    "identifiers",
    "manifest",
    "sketch",
    "toolchain",
]