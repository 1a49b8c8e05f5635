"""
Switchyard CLI.

Usage:
    switchyard manifest --app app.main -o manifest.json
    switchyard routes --app app.main
    switchyard serve --app app.main --port 3000
"""

__version__ = "0.1.0"
__cli_name__ = "switchyard"
