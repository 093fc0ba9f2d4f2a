import threading
import unittest

from scriber.models import DiagnosisDefinition, FindingWeights
from scriber.nlp.knowledge import KnowledgeBase
from scriber.session import DEMO_SCRIPT, Session


class SessionTests(unittest.TestCase):
    def setUp(self):
        self.session = Session()

    def test_add_line_records_speaker_and_trimmed_text(self):
        self.session.add_line("  Any cough or sore throat?  ")
        self.assertEqual(len(self.session.transcript), 1)
        self.assertEqual(self.session.transcript[0].speaker, "provider")
        self.assertEqual(self.session.transcript[0].text, "Any cough or sore throat?")

    def test_blank_utterances_ignored(self):
        for text in ["", "   ", "\n\t"]:
            self.session.submit_utterance(text)
        self.assertEqual(self.session.transcript, ())
        self.assertEqual(self.session.findings, ())

    def test_demo_scenario(self):
        sizes = []
        for utterance in DEMO_SCRIPT:
            self.session.submit_utterance(utterance)
            sizes.append(len(self.session.findings))

        self.assertEqual(sizes, [2, 4, 4, 4, 4])
        self.assertEqual(
            [f.name for f in self.session.findings],
            ["fever", "myalgias", "cough", "sore throat"],
        )
        self.assertEqual(
            [line.speaker for line in self.session.transcript],
            ["patient", "provider", "patient", "provider", "patient"],
        )

        view = self.session.get_view()
        self.assertEqual(view.diffs[0].key, "influenza")
        self.assertEqual(view.soap.A.splitlines()[0], "Influenza (85%)")
        self.assertEqual(view.orders[1].kind, "imaging")

    def test_seed_demo_matches_manual_submission(self):
        manual = Session()
        for utterance in DEMO_SCRIPT:
            manual.submit_utterance(utterance)
        self.session.seed_demo()
        self.assertEqual(self.session.get_view(), manual.get_view())

    def test_repeated_views_identical(self):
        self.session.seed_demo()
        self.assertEqual(self.session.get_view(), self.session.get_view())

    def test_followups_never_target_known_findings(self):
        for utterance in DEMO_SCRIPT:
            self.session.submit_utterance(utterance)
            view = self.session.current_view()
            known = {f.name for f in self.session.findings}
            for followup in view.followups:
                self.assertNotIn(followup.id, known)

    def test_view_does_not_change_with_later_lines(self):
        self.session.add_line("fever")
        view = self.session.current_view()
        self.session.add_line("cough")
        self.assertEqual(len(view.transcript), 1)

    def test_injected_knowledge_base(self):
        kb = KnowledgeBase(
            [DiagnosisDefinition(
                key="strep", label="Strep pharyngitis", prior=-1.0,
                finding_weights={"exudate": FindingWeights(pos=1.5, neg=-0.5)},
                orders=["Rapid strep test"],
            )],
            {"exudate": "Any white patches on the tonsils?"},
        )
        session = Session(kb)
        session.add_line("There was exudate on exam.")
        view = session.current_view()

        self.assertEqual([d.label for d in view.diffs], ["Strep pharyngitis"])
        self.assertEqual(view.followups, [])
        self.assertEqual([o.name for o in view.orders], ["Rapid strep test"])

    def test_concurrent_appends_and_views(self):
        errors = []

        def writer():
            for i in range(200):
                self.session.add_line(f"line {i} fever")

        def reader():
            try:
                for _ in range(200):
                    view = self.session.current_view()
                    # Findings are always produced together with their line
                    if view.transcript:
                        self.assertIn("- fever (c=0.70)", view.soap.O)
            except AssertionError as e:
                errors.append(e)

        threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(errors, [])
        self.assertEqual(len(self.session.transcript), 200)
        self.assertEqual([f.name for f in self.session.findings], ["fever"])


if __name__ == "__main__":
    unittest.main()
