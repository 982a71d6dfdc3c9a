# `name` is the name of the package as used for `pip install package`
name = "landphen"
# `path` is the name of the package for `import package`
path = name.lower().replace("-", "_").replace(" ", "_")
# Your version number should follow https://python.org/dev/peps/pep-0440 and
# https://semver.org
author = "landphen developers"
author_email = ""
description = "NDVI time series of vegetation communities from multi-band satellite scenes"  # One-liner
url = ""  # your project home-page
license = "GNU General Public License version 3"  # See https://choosealicense.com
version = "0.1.0"
