"""Real-time infrastructure — in-process broadcaster + WebSocket.

Learn: Events flow in one direction:
1. Rating routes → Broadcaster.publish() (fan-out to every subscriber queue)
2. Subscriber queue → WebSocket → browser

Each subscriber gets its own queue, seeded with a full rating snapshot
at subscribe time, so a new browser always sees the snapshot before
any later rate frame.
"""
