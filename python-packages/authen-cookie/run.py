"""Development server entry point.

Usage:
    python run.py

Environment variables:
    PORT                  — Port to listen on (default: 3000)
    AUTHEN_COOKIE_CONFIG  — JSON gate settings (also the default secret source)
    AUTHEN_COOKIE_SECRET  — Explicit signing secret
    AUTHEN_COOKIE_USER_HEADER — Trusted header with the user name, when no
                            REMOTE_USER is provided by the front server
"""

import logging
import os
from authen_cookie.app import create_app

if __name__ == "__main__":
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
    app = create_app()
    port = int(os.environ.get("PORT", 3000))
    app.run(host="127.0.0.1", port=port, debug=False)
