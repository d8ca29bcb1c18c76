from typing import Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


class SequenceExhausted(LookupError):
    """Raised by next()/reverse_next() when the sequence has nothing left."""


# --------- capability (structural, no base class required) ----------
@runtime_checkable
class ForwardSequence(Protocol[T]):
    def has_next(self) -> bool: ...

    def next(self) -> T: ...


@runtime_checkable
class DoubleEndedSequence(ForwardSequence[T], Protocol[T]):
    def reverse_next(self) -> T: ...


class SequenceIteratorMixin:
    """Mixin giving capability sequences the Python iterator protocol."""

    def __iter__(self):
        return self

    def __next__(self):
        if not self.has_next():
            raise StopIteration
        return self.next()


# --------- adapters ----------
class _IterableSequence(SequenceIteratorMixin):
    def __init__(self, iterable):
        self._it = iter(iterable)
        self._pending = None
        self._ready = False

    def has_next(self):
        if self._ready:
            return True
        for item in self._it:
            self._pending = item
            self._ready = True
            return True
        return False

    def next(self):
        if not self.has_next():
            raise SequenceExhausted("iterable exhausted")
        self._ready = False
        item, self._pending = self._pending, None
        return item


class _ListSequence(SequenceIteratorMixin):
    def __init__(self, items):
        self._items = list(items)
        self._front = 0
        self._back = len(self._items)   # exclusive

    def has_next(self):
        return self._front < self._back

    def next(self):
        if not self.has_next():
            raise SequenceExhausted("list exhausted")
        item = self._items[self._front]
        self._front += 1
        return item

    def reverse_next(self):
        if not self.has_next():
            raise SequenceExhausted("list exhausted")
        self._back -= 1
        return self._items[self._back]


def from_iterable(iterable):
    """Forward sequence over any Python iterable, pulling one item ahead at most."""
    return _IterableSequence(iterable)


def from_list(items):
    """Double-ended sequence over a list; front and back meet in the middle."""
    return _ListSequence(items)


def is_double_ended(it):
    return isinstance(it, DoubleEndedSequence)


def as_sequence(source):
    if isinstance(source, ForwardSequence):
        return source
    if isinstance(source, (list, tuple)):
        return from_list(source)
    return from_iterable(source)


# --------- combinators ----------
class _Take(SequenceIteratorMixin):
    def __init__(self, it, count):
        self._it = it
        self._remaining = count

    def has_next(self):
        return self._remaining > 0 and self._it.has_next()

    def next(self):
        if self._remaining <= 0:
            raise SequenceExhausted("take limit reached")
        item = self._it.next()
        self._remaining -= 1
        return item


class _Filter(SequenceIteratorMixin):
    def __init__(self, it, pred):
        self._it = it
        self._pred = pred
        self._pending = None
        self._ready = False

    def has_next(self):
        if self._ready:
            return True
        while self._it.has_next():
            item = self._it.next()
            if self._pred(item):
                self._pending = item
                self._ready = True
                return True
        return False

    def next(self):
        if not self.has_next():
            raise SequenceExhausted("no element satisfies the predicate")
        self._ready = False
        item, self._pending = self._pending, None
        return item


class _Map(SequenceIteratorMixin):
    def __init__(self, it, fn):
        self._it = it
        self._fn = fn

    def has_next(self):
        return self._it.has_next()

    def next(self):
        return self._fn(self._it.next())


class _DoubleEndedMap(_Map):
    def reverse_next(self):
        return self._fn(self._it.reverse_next())


class _Zip(SequenceIteratorMixin):
    def __init__(self, lit, rit, fn):
        self._lit = lit
        self._rit = rit
        self._fn = fn

    def has_next(self):
        return self._lit.has_next() and self._rit.has_next()

    def next(self):
        if not self.has_next():
            raise SequenceExhausted("one side of the zip is exhausted")
        left = self._lit.next()
        right = self._rit.next()
        return self._fn(left, right)


class _Reversed(SequenceIteratorMixin):
    def __init__(self, it):
        self._it = it

    def has_next(self):
        return self._it.has_next()

    def next(self):
        return self._it.reverse_next()


def take(it, n):
    if n < 0:
        raise ValueError("take count must be >= 0")
    return _Take(it, n)


def filter(it, pred):
    return _Filter(it, pred)


def map(it, fn):
    """Lazy map; stays double-ended when `it` is double-ended."""
    if is_double_ended(it):
        return _DoubleEndedMap(it, fn)
    return _Map(it, fn)


def zip(lit, rit, fn):
    return _Zip(lit, rit, fn)


def reduce(it, init, fn):
    """Strict left fold: fn(fn(fn(init, a), b), c)..."""
    result = init
    while it.has_next():
        result = fn(result, it.next())
    return result


def reverse(it):
    """Forward sequence yielding from the tail of a double-ended sequence."""
    if not is_double_ended(it):
        raise TypeError(f"{type(it).__name__} does not support reverse_next()")
    return _Reversed(it)


class LazySequence:
    """
    A chainable wrapper over a capability sequence. Each step wraps the
    upstream sequence in a combinator; nothing is pulled until a terminal
    operation (or iteration) asks for elements.

    A LazySequence is single-pass, like the cursor it usually wraps.
    """
    def __init__(self, source):
        self._seq = as_sequence(source)

    # --------- chainable operators (lazy) ----------
    def map(self, fn):
        return LazySequence(map(self._seq, fn))

    def filter(self, pred):
        return LazySequence(filter(self._seq, pred))

    def take(self, n):
        return LazySequence(take(self._seq, n))

    def zip(self, other, fn):
        return LazySequence(zip(self._seq, as_sequence(other), fn))

    def reverse(self):
        return LazySequence(reverse(self._seq))

    # --------- reducing operations (force evaluation) ----------
    def reduce(self, init, fn):
        return reduce(self._seq, init, fn)

    def to_list(self):
        items = []
        while self._seq.has_next():
            items.append(self._seq.next())
        return items

    def count(self):
        return self.reduce(0, lambda n, _: n + 1)

    def sum(self, start=0):
        return self.reduce(start, lambda total, x: total + x)

    def first(self, default=None):
        """Return the first element, or default if empty"""
        if self._seq.has_next():
            return self._seq.next()
        return default

    # --------- capability / iterator protocol ----------
    def has_next(self):
        return self._seq.has_next()

    def next(self):
        return self._seq.next()

    def __iter__(self):
        return self

    def __next__(self):
        if not self._seq.has_next():
            raise StopIteration
        return self._seq.next()
