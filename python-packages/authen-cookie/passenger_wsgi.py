"""Phusion Passenger / mod_wsgi entry point.

Both servers look for a module-level ``application`` callable that conforms
to PEP 3333. Let the front server perform the Windows
authentication (e.g. IIS, or Apache with mod_auth_sspi) so that
``REMOTE_USER`` reaches the app; the cookie then spares it from repeating
the handshake on every request.

Environment variables:
    AUTHEN_COOKIE_SECRET  — Signing secret. If unset, derived from the
                            mtime and inode of AUTHEN_COOKIE_FINGERPRINT_FILE
                            (or of AUTHEN_COOKIE_CONFIG).
    AUTHEN_COOKIE_REFRESH — Cookie validity in seconds (default: 3600).
    AUTHEN_COOKIE_NAME    — Cookie name (default: NTLM_AUTHEN).
"""

import sys
import os

# Ensure the package directory is on the path when the server runs this file
_here = os.path.dirname(os.path.abspath(__file__))
if _here not in sys.path:
    sys.path.insert(0, _here)

from authen_cookie.app import create_app

# Passenger and mod_wsgi expect a module-level 'application' variable
application = create_app()
