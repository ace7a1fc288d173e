"""uvicorn entrypoint: `uvicorn main:app` from apps/api.

Building the app here, rather than at codevault.app import time, lets tests
call create_app() with their own settings and fakes.
"""

from codevault.app import create_app
from codevault.middleware import add_request_id_middleware

app = create_app()
# outermost, so auth failures get a request id as well
add_request_id_middleware(app)

__all__ = ["app"]
