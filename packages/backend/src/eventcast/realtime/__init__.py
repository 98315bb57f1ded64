"""Real-time infrastructure — listener registry + SSE delivery.

Learn: Events flow through two pieces:
1. EventService → BroadcastRegistry.publish (fan-out to every listener)
2. Listener sink → SSE stream → browser (one long-lived response each)

The registry never talks to sockets directly; each listener owns a
bounded sink that the HTTP layer drains.
"""
