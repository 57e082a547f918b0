"""Ethereum address case tools."""


class LowercaseDict(dict):
    """A dictionary subclass that automatically converts all string keys to lowercase.

    - Events, calls and contract reads hand us both checksummed and lowercased addresses,
      and entity ids are built from them
    """

    def __init__(self, *args, **kwargs):
        super().__init__()
        if args:
            if len(args) > 1:
                raise TypeError("expected at most 1 argument, got %d" % len(args))
            self.update(args[0])
        if kwargs:
            self.update(kwargs)

    def __setitem__(self, key, value):
        key = key.lower()
        super().__setitem__(key, value)

    def __getitem__(self, key):
        key = key.lower()
        return super().__getitem__(key)

    def __contains__(self, key):
        return super().__contains__(key.lower())

    def get(self, key, default=None):
        key = key.lower()
        return super().get(key, default)

    def update(self, other=None, **kwargs):
        if other is not None:
            for k, v in other.items() if isinstance(other, dict) else other:
                self[k] = v
        for k, v in kwargs.items():
            self[k] = v
