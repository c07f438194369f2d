"""``python -m areamoments measure face.stl``"""
from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
