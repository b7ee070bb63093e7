__version__ = (0, 1, 0)


# Make a couple frequently used things available right here.
from .asset import Asset
from .filter import get_filter
