"""The absence sentinel: a literal that has never been given a value."""

from __future__ import annotations


class _Absent:
    _instance: _Absent | None = None

    def __new__(cls) -> _Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        # Unpickling and deepcopy resolve back to the singleton.
        return (_Absent, ())


ABSENT = _Absent()


def is_absent(value: object) -> bool:
    return value is ABSENT
