# Ensure tests import modules from this project directory first, so that
# `import cgi_gateway.*` works without installing the package.
import os
import sys

PROJECT_ROOT = os.path.dirname(__file__)

if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)
