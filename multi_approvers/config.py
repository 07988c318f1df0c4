from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Union

import tomli
from pydantic import BaseModel, ValidationError, field_validator


class Member(BaseModel):
    login: str


class Roster(BaseModel):
    """
    A static list of trusted members.

    Accepted files:

    - JSON, a list of objects with a `login` key (`[{"login": "octocat"}]`)
      or a list of logins (`["octocat"]`)
    - TOML, `members = ["octocat"]`
    """

    members: List[Member] = []

    @field_validator("members", mode="before")
    @classmethod
    def coerce_logins(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [dict(login=m) if isinstance(m, str) else m for m in v]
        return v

    @property
    def logins(self) -> List[str]:
        return [m.login for m in self.members]

    @classmethod
    def parse_json(cls, content: str) -> Union[Roster, ValueError]:
        try:
            data = json.loads(content)
            if isinstance(data, list):
                data = dict(members=data)
            return cls.model_validate(data)
        except (ValueError, ValidationError) as e:
            return e

    @classmethod
    def parse_toml(
        cls, content: str
    ) -> Union[Roster, tomli.TOMLDecodeError, ValidationError]:
        try:
            return cls.model_validate(tomli.loads(content))
        except (tomli.TOMLDecodeError, ValidationError) as e:
            return e


class InvalidRoster(ValueError):
    pass


def load_roster(path: Union[str, Path]) -> Roster:
    """
    Read a roster file, choosing the format from the file extension.
    """
    path = Path(path)
    content = path.read_text()
    if path.suffix == ".toml":
        parsed = Roster.parse_toml(content)
    else:
        parsed = Roster.parse_json(content)
    if not isinstance(parsed, Roster):
        raise InvalidRoster(f"could not parse members file {str(path)!r}: {parsed}")
    return parsed
