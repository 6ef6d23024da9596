"""Protocol constants for the DAS simulation."""

# Base message overhead (request_id + message type)
MESSAGE_OVERHEAD = 8  # bytes

# Identifiers travel as fixed 32-byte big-endian integers
ID_SIZE = 32  # bytes

# Block header on the wire: sequence number (8) + dimension (4) + padding
BLOCK_HEADER_SIZE = 64  # bytes

