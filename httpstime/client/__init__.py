from httpstime.client.http import measure_http
from httpstime.client.session import SessionClient, measure_session

__all__ = ["SessionClient", "measure_http", "measure_session"]
