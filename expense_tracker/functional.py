from abc import ABC, abstractmethod
from typing import Callable, Generic, TypeVar

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')


class Either(Generic[E, T], ABC):
    """Result of a check: ``Right(value)`` on success, ``Left(error)`` otherwise."""

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        pass

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def get_error(self) -> E:
        pass

    def is_right(self) -> bool:
        return isinstance(self, Right)

    def is_left(self) -> bool:
        return isinstance(self, Left)


class Right(Either[E, T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f):
        return Right(f(self._value))

    def bind(self, f):
        return f(self._value)

    def get_or_else(self, default):
        return self._value

    def get_error(self):
        raise ValueError("Right has no error")

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):

    def __init__(self, error: E):
        self._error = error

    def map(self, f):
        return self

    def bind(self, f):
        return self

    def get_or_else(self, default):
        return default

    def get_error(self):
        return self._error

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error


def pipe(x, *funcs):
    """pipe(x, f, g) == g(f(x))"""
    res = x
    for f in funcs:
        res = f(res)
    return res
