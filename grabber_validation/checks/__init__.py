# Import the stage modules so their @register decorators run.
from . import probe  # noqa: F401
from . import grab  # noqa: F401
from . import additivity  # noqa: F401
