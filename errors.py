class ChessRoomError(Exception):
    """Base for every error reported back to a client."""


class RoomAlreadyExists(ChessRoomError):
    def __init__(self, room_id: str):
        self.room_id = room_id
        super().__init__(f"Room '{room_id}' already exists")


class RoomNotFound(ChessRoomError):
    def __init__(self, room_id: str):
        self.room_id = room_id
        super().__init__(f"Room '{room_id}' does not exist")


class WrongPassword(ChessRoomError):
    def __init__(self, room_id: str):
        self.room_id = room_id
        super().__init__("Wrong password")


class RoomFull(ChessRoomError):
    def __init__(self, room_id: str):
        self.room_id = room_id
        super().__init__(f"Room '{room_id}' is full")


class NotAParticipant(ChessRoomError):
    def __init__(self, room_id: str):
        self.room_id = room_id
        super().__init__(f"You are not seated in room '{room_id}'")


class NotYourTurn(ChessRoomError):
    def __init__(self):
        super().__init__("Not your turn")


class IllegalMove(ChessRoomError):
    def __init__(self, detail: str = "Invalid move"):
        super().__init__(detail)


class GameConcluded(IllegalMove):
    def __init__(self, room_id: str):
        self.room_id = room_id
        super().__init__(f"Game in room '{room_id}' is over")


class PersistenceWriteFailure(ChessRoomError):
    pass


class SnapshotLoadCorrupt(ChessRoomError):
    pass


class AlreadySeated(ChessRoomError):
    def __init__(self, room_id: str):
        self.room_id = room_id
        super().__init__(f"This connection already holds a seat in room '{room_id}'")
