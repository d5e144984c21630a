from .note import Note, NoteSet, SetType
from .user import User, user_cache

__all__ = ["Note", "NoteSet", "SetType", "User", "user_cache"]
