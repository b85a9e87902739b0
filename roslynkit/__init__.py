"""
roslynkit - acquisition of the C# (Roslyn) language server and dotnet project tooling.
"""

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("roslynkit")
except PackageNotFoundError:
    __version__ = "0.1.0"
