from core.utils.helper import *
from core.utils.validators import *
