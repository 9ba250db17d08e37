import os
import sys

from mangum import Mangum

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from points.api import app
from points.config import configure_logging, get_settings

configure_logging(get_settings().log_level)

handler = Mangum(app)
