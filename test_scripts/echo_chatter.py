import sys

import zmq

endpoint = sys.argv[1] if len(sys.argv) > 1 else "tcp://localhost:5556"

context = zmq.Context()
socket = context.socket(zmq.SUB)
socket.connect(endpoint)
socket.setsockopt_string(zmq.SUBSCRIBE, "chatter")

print(f"listening on {endpoint} ...")
while True:
    topic, msg = socket.recv_multipart()
    print(f"[{topic.decode()}] {msg.decode()}")
