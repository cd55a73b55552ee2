class RoomError(Exception):
    """Validation failure reported to the originating connection as ERROR.

    Raised before any state is touched, so catching it never requires a
    rollback.
    """

    message = "Request rejected"

    def __init__(self, message: str = None):
        self.message = message or self.message
        super().__init__(self.message)


class InvalidRoomName(RoomError):
    message = "Room name must be between 1 and 15 characters"


class RoomNotFound(RoomError):
    message = "Room not found"


class RoomFull(RoomError):
    message = "Room is full"


class AlreadyInRoom(RoomError):
    message = "You are already in a room"


class MatchmakingActive(RoomError):
    message = "Leave random chat before joining a room"
