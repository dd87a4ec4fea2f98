from httpstime.session.acceptor import SessionAcceptor
from httpstime.session.endpoint import Session, SessionEndpoint, WebSocketSession
from httpstime.session.handler import SessionHandler

__all__ = ["Session", "SessionAcceptor", "SessionEndpoint", "SessionHandler", "WebSocketSession"]
