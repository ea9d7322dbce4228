from core.const import *
from core.translations import *
from core.utils.helper import YAMLError
from core.node import *
from core.plugin import *
