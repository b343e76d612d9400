# app/api/socketio/__init__.py

"""
Socket.IO namespaces for real-time features

Active namespaces:
- /: Private per-user rooms and point-to-point message relay

To add a new namespace:
1. Create a new file: <feature>_namespace.py
2. Inherit from AuthNamespace (handles token verification automatically)
3. Implement optional callbacks:
   - handle_connect(self, sid, session) - called after successful auth
   - handle_disconnect(self, sid, session) - called before the session is released
4. Register it: sio.register_namespace(YourNamespace('/your-path'))
5. Import it here
"""

from infrastructure.socketio_manager import sio, manager, router

# Import namespaces to register them
from .relay_namespace import RelayNamespace


__all__ = ['sio', 'manager', 'router', 'RelayNamespace']
