"""Exceptions raised by scrollgate."""


class ScrollgateError(Exception):
    pass


class NoPuzzleError(ScrollgateError):
    """An answer was submitted to a page that has no puzzle."""


class PageNotFoundError(ScrollgateError):
    pass
