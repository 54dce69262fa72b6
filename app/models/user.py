"""
Viewer identity supplied by the identity provider
"""

from typing import Optional

from pydantic import BaseModel


class Viewer(BaseModel):
    """The signed-in user; `name` is the display name stored in move lists"""
    id: str
    name: str
    email: Optional[str] = None

    def __repr__(self):
        return f"<Viewer(id={self.id}, name={self.name})>"
