import os

from typing import Union

# Recommended by PEP 519
PathLike = Union[str, bytes, os.PathLike]
