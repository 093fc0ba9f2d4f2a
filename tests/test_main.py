import unittest
from unittest import mock

from fastapi.testclient import TestClient

import main
from scriber.session import Session

WEBM_HEADER = b"\x1a\x45\xdf\xa3"


class ApiTests(unittest.TestCase):
    def setUp(self):
        self._original_session = main.SESSION
        main.SESSION = Session()
        self.client = TestClient(main.app)

    def tearDown(self):
        main.SESSION = self._original_session

    def test_health(self):
        response = self.client.get("/healthz")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "healthy")
        self.assertEqual(body["transcript_lines"], 0)

    def test_submit_utterance_and_view(self):
        response = self.client.post("/utterances", json={"text": "I have a fever"})
        self.assertEqual(response.status_code, 202)

        view = self.client.get("/view").json()
        self.assertEqual(view["transcript"], [{"speaker": "patient", "text": "I have a fever"}])
        self.assertEqual(view["soap"]["O"], "- fever (c=0.70)")
        self.assertEqual(len(view["diffs"]), 3)

    def test_blank_utterance_accepted_and_ignored(self):
        response = self.client.post("/utterances", json={"text": "   "})
        self.assertEqual(response.status_code, 202)
        self.assertEqual(self.client.get("/view").json()["transcript"], [])

    def test_demo(self):
        view = self.client.post("/demo").json()
        self.assertEqual(len(view["transcript"]), 5)
        self.assertEqual(view["diffs"][0]["label"], "Influenza")
        self.assertEqual(view["orders"][1], {"name": "CXR PA/LAT", "kind": "imaging"})

    def test_panels(self):
        self.client.post("/demo")
        panels = self.client.get("/view/panels").json()
        self.assertEqual(panels["diffs"].splitlines()[0], "Influenza — 84%")

    def test_view_websocket_pushes_snapshot(self):
        main.SESSION.submit_utterance("cough")
        with mock.patch.object(main.config, "VIEW_PUSH_INTERVAL", 60), \
                self.client.websocket_connect("/ws/view") as websocket:
            first = websocket.receive_json()
            self.assertEqual(first["transcript"][0]["text"], "cough")
            self.assertIn("updated_at", first)

            main.SESSION.submit_utterance("fever")
            websocket.send_text("refresh")
            second = websocket.receive_json()
            self.assertEqual(len(second["transcript"]), 2)

    def test_audio_websocket_text_and_finalize(self):
        with self.client.websocket_connect("/ws/audio") as websocket:
            websocket.send_text("Any cough or sore throat?")
            websocket.send_text("__finalize__")
            message = websocket.receive_json()

        self.assertEqual(message["type"], "final_view")
        self.assertEqual(message["data"]["transcript"][0]["speaker"], "provider")
        self.assertEqual(len(main.SESSION.findings), 2)

    def test_audio_websocket_transcribes_chunks(self):
        async def fake_transcribe_audio_chunk(chunk: bytes) -> str:
            return "I've had fever and body aches."

        with mock.patch.object(main, "transcribe_audio_chunk", fake_transcribe_audio_chunk):
            with self.client.websocket_connect("/ws/audio") as websocket:
                size = main.config.MIN_AUDIO_CHUNK_BYTES
                websocket.send_bytes(WEBM_HEADER + b"\x00" * size)
                websocket.send_bytes(WEBM_HEADER + b"tiny")
                websocket.send_bytes(b"x" * size)
                websocket.send_text("__finalize__")
                message = websocket.receive_json()

        transcript = message["data"]["transcript"]
        self.assertEqual(transcript, [{"speaker": "patient", "text": "I've had fever and body aches."}])
        self.assertEqual([f.name for f in main.SESSION.findings], ["fever", "myalgias"])


if __name__ == "__main__":
    unittest.main()
