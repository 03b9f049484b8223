from typing import Any

from pydantic import BaseModel

from ._errors import ValidationError


class PathElement(BaseModel):
    kind: str
    id: int | None = None
    name: str | None = None

    @property
    def is_complete(self) -> bool:
        return self.id is not None or self.name is not None

    @property
    def id_or_name(self) -> int | str | None:
        return self.id if self.id is not None else self.name


class Key(BaseModel):
    """A hierarchical path of (kind, id or name) pairs.

    The dataset is not part of the key, it is supplied when the key is
    encoded. Only the last element may lack an identifier, such a key is
    incomplete and waits for the service to assign an id.
    """

    path: list[PathElement]

    @classmethod
    def from_path(cls, *path_elements: Any) -> "Key":
        """build a key from alternating kinds and ids/names

        Usage:
            >>> Key.from_path("Company", "Google")  # complete, with name
            >>> Key.from_path("Company", "Google", "Employee", 5)  # with parent
            >>> Key.from_path("Company", "Google", "Employee")  # incomplete

        Raises:
            ValidationError: no elements were given, a kind is not a string
                or an identifier is neither an int nor a str
        """
        if len(path_elements) == 0:
            raise ValidationError("A key needs at least one kind")

        path: list[PathElement] = []
        for i in range(0, len(path_elements), 2):
            pair = path_elements[i : i + 2]
            kind = pair[0]
            if not isinstance(kind, str):
                raise ValidationError(
                    f"Expected a string kind as argument {i + 1}, got {kind!r}"
                )
            element = PathElement(kind=kind)
            if len(pair) == 2 and pair[1] is not None:
                id_or_name = pair[1]
                if isinstance(id_or_name, bool):
                    raise ValidationError(
                        f"Expected an int id or str name as argument {i + 2},"
                        f" got {id_or_name!r}"
                    )
                elif isinstance(id_or_name, int):
                    element.id = id_or_name
                elif isinstance(id_or_name, str):
                    element.name = id_or_name
                else:
                    raise ValidationError(
                        f"Expected an int id or str name as argument {i + 2},"
                        f" got {id_or_name!r} (a {type(id_or_name)})"
                    )
            path.append(element)
        return cls(path=path)

    @property
    def kind(self) -> str:
        return self.path[-1].kind

    @property
    def id_or_name(self) -> int | str | None:
        return self.path[-1].id_or_name

    @property
    def parent(self) -> "Key | None":
        if len(self.path) <= 1:
            return None
        return Key(path=[element.model_copy() for element in self.path[:-1]])

    @property
    def is_complete(self) -> bool:
        return all(element.is_complete for element in self.path)

    def __repr__(self):
        flat = ", ".join(
            f"{e.kind!r}, {e.id_or_name!r}" if e.is_complete else repr(e.kind)
            for e in self.path
        )
        return f"Key({flat})"
