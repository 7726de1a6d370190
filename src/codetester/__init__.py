"""codetester – marker-driven test harness for language servers."""
try:
    from importlib.metadata import version, PackageNotFoundError
    try:
        __version__ = version('codetester')
    except PackageNotFoundError:
        __version__ = '0.0.0.dev0'
except ImportError:
    __version__ = '0.0.0.dev0'

from codetester.fixture import CodeMarker, CodeRange, Fixture, FixtureKind, SymInfo, code, worksheet
from codetester.tester import CodeTester

__all__ = [
    'CodeMarker', 'CodeRange', 'CodeTester', 'Fixture', 'FixtureKind', 'SymInfo',
    'code', 'worksheet', '__version__',
]
