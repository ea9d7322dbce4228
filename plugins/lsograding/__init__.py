from .const import *
from .entry import *
from .padconfig import *
from .shorthand import *
from .statemachine import *
from .timer import *
from .version import __version__
