"""
This package contains everything that turns validated frame bytes into
typed sensor readings, and the builders for outbound frames.

Sub-packages handle specific layers:

- ``frame``: Frame validation, header and fragment sub-header parsing.
- ``tlv``: Parameter field header split and length resolution.
- ``params``: Parameter registry, descriptors and value decoding.
- ``business``: The parameter walk over an unfragmented business payload.
- ``commands``: Query/set control frame construction and control content parsing.
"""
