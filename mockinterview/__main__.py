#!/usr/bin/env python3
"""
Main entry point for the mock interview system.
Allows running the package with: python -m mockinterview
"""
import sys
from typing import Dict, List

from .config import get_config, Config, TERMINATION_PHRASE, INTERVIEWER_NAME
from .infrastructure.llm import GeminiRestClient
from .infrastructure.data import SnapshotStore, ProgressStore
from .interview import (
    InterviewSession, ConversationAdapter, AssessmentAdapter, PromotionTestController,
    InterviewEventBus, EventLogger, InterviewMetrics, EventType, InterviewParameters,
    SendStatus, Tier, Speaker, UserAnswer, CandidateProgress, is_test_eligible,
)
from .utils import setup_logging

HELP_TEXT = (
    f"Commands: /back and /next to review past questions, /skip to skip a question, "
    f"/pause to save and quit. Type '{TERMINATION_PHRASE}' to finish and get feedback."
)


def parse_args(argv: List[str]) -> Dict[str, str]:
    """Parse --key=value flags and bare --flags."""
    options: Dict[str, str] = {}
    for arg in argv:
        if not arg.startswith("--"):
            continue
        key, _, value = arg[2:].partition("=")
        options[key] = value if value else "true"
    return options


def build_client(config: Config) -> GeminiRestClient:
    return GeminiRestClient(
        api_key=config.gemini_api_key,
        project=config.google_cloud_project,
        location=config.vertex_location,
        model=config.model_name,
        credentials_json=config.google_application_credentials,
        timeout=config.llm_timeout,
        max_output_tokens=config.max_output_tokens,
    )


def _ask(prompt: str, value: str = "") -> str:
    while not value.strip():
        value = input(prompt)
    return value.strip()


def _print_turn(session: InterviewSession, index: int, label: str = ""):
    turn = session.turns[index]
    who = INTERVIEWER_NAME if turn.speaker == Speaker.INTERVIEWER else "You"
    print(f"{label}{who}: {turn.text}")


def run_interview(session: InterviewSession, options: Dict[str, str], config: Config,
                  snapshots: SnapshotStore, progress_store: ProgressStore) -> int:
    progress = progress_store.load()
    tier = Tier.parse(options["tier"]) if "tier" in options else progress.tier

    if "resume" in options:
        snapshot = snapshots.load() if snapshots.exists() else None
        if snapshot is None:
            print("❌ No paused interview to resume.")
            return 1
        ok = session.resume(snapshot, tier)
        if ok:
            print(f"\n▶️  Resuming {snapshot.parameters.job_role} interview at {snapshot.parameters.company_name}")
            for idx in range(len(session.turns)):
                _print_turn(session, idx)
    else:
        params = InterviewParameters(
            company_name=_ask("Company name: ", options.get("company", "")),
            job_role=_ask("Job role: ", options.get("role", "")),
            company_url=_ask("Company website: ", options.get("url", "")),
        )
        language = options.get("language") or config.language_code
        if snapshots.exists():
            print("🗑️  Discarding the previously paused interview.")
            snapshots.clear()
        print(f"\n🎙️  Starting {tier.display_name} interview - your interviewer is preparing...")
        ok = session.start(params, language, tier)
        if ok:
            _print_turn(session, len(session.turns) - 1)

    if not ok:
        print(f"❌ {session.error_message}")
        return 1

    print(HELP_TEXT)
    print("=" * 50)

    while True:
        try:
            line = input("\nYou: ").strip()
        except (EOFError, KeyboardInterrupt):
            line = "/pause"

        if line == "/back":
            if not session.review.can_step_back():
                print("(no questions to review yet)")
                continue
            _print_turn(session, session.review.step_back(), label="🔎 ")
            continue
        if line == "/next":
            if not session.review.can_step_forward():
                print("(not reviewing)")
                continue
            index = session.review.step_forward()
            if index is None:
                print("(back to the live interview)")
            else:
                _print_turn(session, index, label="🔎 ")
            continue
        if line == "/pause":
            if not session.can_pause:
                session.abandon()
                print("⏹️  Interview closed without saving.")
                return 1
            snapshot = session.pause()
            snapshots.save(snapshot)
            print("⏸️  Interview paused. Resume later with --resume.")
            return 0

        if not session.can_send:
            session.focus_input()
            print("(left review mode - send your answer again)")
            continue
        if not line:
            continue

        if line.lower() == TERMINATION_PHRASE.lower():
            print("📝 Analyzing your performance and generating feedback...")
            status = session.send_candidate_text(line)
        else:
            print(f"{INTERVIEWER_NAME}: ", end="", flush=True)
            status = session.skip() if line == "/skip" else session.send_candidate_text(line)

        if status == SendStatus.FAILED:
            print(f"\n❌ {session.error_message}")
        elif status == SendStatus.ENDED:
            return finish_interview(session, progress, snapshots, progress_store)


def finish_interview(session: InterviewSession, progress: CandidateProgress,
                     snapshots: SnapshotStore, progress_store: ProgressStore) -> int:
    snapshots.clear()
    progress.record_completed_interview()
    progress_store.save(progress)

    print("\n" + "=" * 50)
    print("🎯 INTERVIEW COMPLETE")
    print("=" * 50)
    print(session.outcome.feedback)

    if is_test_eligible(progress):
        print(f"\n🏅 You've completed {progress.interviews_completed} interviews. "
              f"Pass a short test to unlock the {progress.tier.next().display_name} level: "
              f"run with --test")
    return 0


def run_test(controller: PromotionTestController, progress_store: ProgressStore) -> int:
    progress = progress_store.load()
    if not is_test_eligible(progress):
        print(f"❌ The promotion test is not available yet "
              f"({progress.interviews_completed} interviews completed at {progress.tier.display_name} level).")
        return 1

    print(f"\n📝 Generating your {progress.tier.display_name} promotion test...")
    questions = controller.start(progress.tier)
    if questions is None:
        print(f"❌ {controller.error_message}")
        return 1

    answers = []
    for n, question in enumerate(questions, start=1):
        print(f"\n{n}. {question.question}")
        for i, option in enumerate(question.options, start=1):
            print(f"   {i}) {option}")
        choice = ""
        while not (choice.isdigit() and 1 <= int(choice) <= len(question.options)):
            choice = input("Your answer: ").strip()
        answers.append(UserAnswer(question_id=question.id, answer=question.options[int(choice) - 1]))

    if not controller.can_submit(answers):
        print(f"❌ Unanswered questions: {controller.missing_answers(answers)}")
        return 1

    result = controller.submit(answers)
    if result is None:
        print(f"❌ {controller.error_message}")
        return 1

    print("\n" + "=" * 50)
    print(f"{'✅ PASSED' if result.passed else '❌ NOT PASSED'} - score {result.score:.0f}/100")
    print("=" * 50)
    print(result.feedback)
    for detail in result.detailed_feedback:
        mark = "✔" if detail.is_correct else "✘"
        print(f"\n{mark} {detail.question_id}: you answered {detail.user_answer!r}")
        if not detail.is_correct:
            print(f"   Correct answer: {detail.correct_answer}")
        print(f"   {detail.explanation}")

    if controller.apply_outcome(progress):
        print(f"\n🎉 You are now at the {progress.tier.display_name} level!")
    progress_store.save(progress)
    return 0


def main():
    """Command-line interface for mock interviews and promotion tests."""

    # Load configuration from environment
    try:
        config = get_config()
    except ValueError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)

    options = parse_args(sys.argv[1:])
    if "tier" in options:
        try:
            Tier.parse(options["tier"])
        except ValueError as e:
            print(f"❌ {e}")
            sys.exit(1)

    setup_logging(config.log_file, config.log_level)
    print(f"📁 Detailed logs: {config.log_file}")

    # Event wiring: log everything, stream replies to the console
    event_bus = InterviewEventBus()
    metrics = InterviewMetrics()
    event_bus.subscribe_all(EventLogger().handle_event)
    event_bus.subscribe_all(metrics.handle_event)
    event_bus.subscribe(EventType.REPLY_CHUNK, lambda e: print(e.data["chunk"], end="", flush=True))
    event_bus.subscribe(EventType.REPLY_COMPLETED, lambda e: print())

    client = build_client(config)
    print(f"🔌 Model: {config.model_name} via {'Vertex AI' if config.uses_vertex else 'Gemini API'}")
    snapshots = SnapshotStore(config.snapshot_path)
    progress_store = ProgressStore(config.progress_path)

    if "test" in options:
        controller = PromotionTestController(AssessmentAdapter(client), event_bus)
        code = run_test(controller, progress_store)
    else:
        session = InterviewSession(ConversationAdapter(client), event_bus)
        code = run_interview(session, options, config, snapshots, progress_store)

    print(f"📈 Session metrics: {metrics.get_metrics()}")
    sys.exit(code)


if __name__ == "__main__":
    main()
