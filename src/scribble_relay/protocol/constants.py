from typing import Final

# Message type constants (stringly-typed protocol; canonical list lives here)

# server -> client, once per connection
T_HELLO: Final = "hello"

# client -> server, relayed verbatim to every other client
T_DRAW: Final = "draw"
T_CLEAR: Final = "clear"
T_CURSOR: Final = "cursor"

RELAY_TYPES = frozenset({T_DRAW, T_CLEAR, T_CURSOR})

# client -> server, answered with a broadcast to every client
T_RECOGNIZE_IMAGE: Final = "recognize_image"

# server -> clients
T_RECOGNITION_RESULT: Final = "recognition_result"
T_ERROR: Final = "error"
