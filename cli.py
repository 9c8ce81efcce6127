"""Context-compression chat CLI — chat, demo, and model table.

Usage:
    python cli.py chat [--compression-window N] [--recent-window N] [--history FILE]
    python cli.py demo              Compare a long dialog with and without compression
    python cli.py models            Print context limits and prices
"""

from __future__ import annotations

import argparse
import logging
import sys

logger = logging.getLogger("ctx-cli")

RECAP_QUESTION = "Recap our conversation: what did we talk about and what did we decide?"

DEMO_DIALOG: list[tuple[str, str]] = [
    ("user", "Hi! I want to learn machine learning. Where should I start?"),
    ("assistant", "Great! Start with Python basics and the maths: linear algebra and statistics."),
    ("user", "I already know Python. Which libraries do I need for ML?"),
    ("assistant", "The core ones are NumPy, Pandas, Scikit-learn and Matplotlib. For deep learning, TensorFlow or PyTorch."),
    ("user", "Got it. Are there any good courses?"),
    ("assistant", "Yes! Coursera (Andrew Ng), Fast.ai and the Google ML Crash Course are all solid choices."),
    ("user", "Thanks! How long does it usually take to learn?"),
    ("assistant", "Three to six months for the basics, one to two years to feel confident. It depends on how intensively you study."),
    ("user", "OK. What should my first project be?"),
    ("assistant", "Start with classification (for example MNIST digit recognition) or regression (price prediction)."),
    ("user", "MNIST sounds interesting. Which model should I use?"),
    ("assistant", "Begin with logistic regression, then a simple neural network (MLP), then a CNN."),
    ("user", "What is a CNN?"),
    ("assistant", "A Convolutional Neural Network. It works very well on images."),
    ("user", "I see. How do I evaluate a model?"),
    ("assistant", "Use metrics such as accuracy, precision, recall and F1-score. Cross-validation matters too."),
    ("user", "What do I do about overfitting?"),
    ("assistant", "More data, L1/L2 regularization, dropout, early stopping and data augmentation."),
    ("user", "Where do I get data for projects?"),
    ("assistant", "Kaggle, the UCI ML Repository, Google Dataset Search and OpenML. Kaggle also runs competitions."),
    ("user", "Great! One more question: do I need a GPU?"),
    ("assistant", "Not at first. Google Colab gives you a free GPU. For serious projects one is worth having."),
    ("user", "What do ML engineers earn?"),
    ("assistant", "It varies a lot by country and seniority; senior roles pay well above typical software salaries."),
    ("user", "Good motivation! Thanks for the help!"),
    ("assistant", "You're welcome! Good luck with ML. Practice regularly, that is what matters most."),
]


# ---------------------------------------------------------------------------
#  Wiring
# ---------------------------------------------------------------------------

def _configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format="%(message)s")


def _build_gateway(settings):
    """Create the configured provider or exit with a readable error."""
    from llm.providers import provider_from_settings

    try:
        return provider_from_settings(settings)
    except ValueError as exc:
        logger.error(f"{exc}.  Set LLM_API_KEY (or OPENAI_API_KEY) in .env")
        sys.exit(1)


def _build_context(gateway, settings, compression_window=None, recent_window=None):
    from context_manager import ContextManager

    return ContextManager(
        gateway,
        settings.COMPRESSION_WINDOW if compression_window is None else compression_window,
        settings.RECENT_WINDOW if recent_window is None else recent_window,
        summary_temperature=settings.SUMMARY_TEMPERATURE,
        max_summary_tokens=settings.MAX_SUMMARY_TOKENS,
    )


# ---------------------------------------------------------------------------
#  Printing
# ---------------------------------------------------------------------------

def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def _print_stats(stats) -> None:
    print("  Compression stats:")
    print(f"    Total messages:        {stats.total_messages}")
    print(f"    Compressed blocks:     {stats.compressed_blocks}")
    print(f"    Recent (verbatim):     {stats.recent_messages}")
    print(f"    Original tokens:       {stats.original_tokens}")
    print(f"    Compressed tokens:     {stats.compressed_tokens}")
    print(f"    Tokens saved:          {stats.tokens_saved}")
    print(f"    Compression:           {stats.compression_percent:.1f}%")


def _print_context(messages: list[dict]) -> None:
    print("  Context for next request:")
    for i, msg in enumerate(messages, 1):
        content = _truncate(msg["content"].replace("\n", " "), 100)
        print(f"    [{i}] {msg['role']}: {content}")


def _print_history(messages) -> None:
    if not messages:
        print("  History is empty.")
        return
    print(f"  Full history ({len(messages)} messages):")
    for i, msg in enumerate(messages, 1):
        print(f"    [{i}] {msg.timestamp:%H:%M:%S} {msg.role.value}: {msg.content}")


def _print_usage(result, cost: float) -> None:
    print(f"    Prompt tokens:      {result.prompt_tokens}")
    print(f"    Completion tokens:  {result.completion_tokens}")
    print(f"    Total tokens:       {result.total_tokens}")
    print(f"    Cost:               ${cost:.6f}")


# ---------------------------------------------------------------------------
#  Commands
# ---------------------------------------------------------------------------

def cmd_models(args):
    """Print the known model limits and prices."""
    from usage import MODEL_LIMITS, get_model_pricing

    print(f"  {'Model':<22} {'Context':>10} {'Input $/1M':>12} {'Output $/1M':>12}")
    print(f"  {'─' * 58}")
    for model, limit in MODEL_LIMITS.items():
        inp, out = get_model_pricing(model)
        print(f"  {model:<22} {limit:>10,} {inp:>12.3f} {out:>12.3f}")


def cmd_demo(args):
    """Send the same long dialog with the full history and with compression."""
    from llm.errors import LLMError
    from settings import settings
    from usage import get_model_pricing, request_cost

    gateway = _build_gateway(settings)
    input_price, output_price = get_model_pricing(gateway.model)
    question = {"role": "user", "content": RECAP_QUESTION}

    # ── Without compression ──────────────────────────────────────
    print(f"\n─── Without compression {'─' * 42}\n")
    full = [{"role": role, "content": content} for role, content in DEMO_DIALOG]
    print(f"  Messages: {len(full)}")
    try:
        plain = gateway.complete(full + [question], temperature=settings.CHAT_TEMPERATURE)
    except LLMError as exc:
        logger.error(f"Request failed: {exc}")
        sys.exit(1)
    print(f"\n  Answer: {plain.text}\n")
    _print_usage(plain, request_cost(plain.prompt_tokens, plain.completion_tokens, input_price, output_price))

    # ── With compression ─────────────────────────────────────────
    print(f"\n─── With compression {'─' * 45}\n")
    context = _build_context(gateway, settings, args.compression_window, args.recent_window)
    print(
        f"  Settings: compress every {context.compression_window} messages, "
        f"keep last {context.recent_window} verbatim\n"
    )
    for role, content in DEMO_DIALOG:
        context.add_message(role, content)
        try:
            context.compress_if_needed()
        except LLMError as exc:
            logger.warning(f"Compression failed: {exc}")

    _print_stats(context.get_stats())
    print()
    view = context.get_context_for_request()
    _print_context(view)

    try:
        compressed = gateway.complete(view + [question], temperature=settings.CHAT_TEMPERATURE)
    except LLMError as exc:
        logger.error(f"Request failed: {exc}")
        sys.exit(1)
    print(f"\n  Answer: {compressed.text}\n")
    _print_usage(
        compressed,
        request_cost(compressed.prompt_tokens, compressed.completion_tokens, input_price, output_price),
    )
    print(f"\n{'═' * 65}\n")


def _handle_command(line: str, agent, history_file: str) -> bool:
    """Run a ``/command``.  Returns False when the REPL should exit."""
    command = line.strip().lower()
    if command in ("/quit", "/exit"):
        return False
    if command == "/stats":
        _print_stats(agent.context.get_stats())
        if agent.tracker is not None:
            print(f"    Context usage:         {agent.tracker.format_context_bar(30)}")
            print(f"    Session cost:          ${agent.tracker.total_cost:.6f}")
    elif command == "/context":
        _print_context(agent.context.get_context_for_request())
    elif command == "/history":
        _print_history(agent.context.history)
    elif command == "/reset":
        agent.clear()
        logger.info("Conversation cleared")
    elif command == "/save":
        try:
            agent.save(history_file)
        except OSError as exc:
            logger.error(f"Could not save history: {exc}")
    else:
        logger.info("Commands: /stats /context /history /reset /save /quit")
    return True


def cmd_chat(args):
    """Interactive chat with automatic context compression."""
    from agent import Agent
    from history import HistoryError
    from settings import settings
    from usage import UsageTracker

    gateway = _build_gateway(settings)
    context = _build_context(gateway, settings, args.compression_window, args.recent_window)
    agent = Agent(
        gateway,
        context,
        system_prompt=settings.SYSTEM_PROMPT,
        temperature=settings.CHAT_TEMPERATURE,
        max_tokens=settings.MAX_RESPONSE_TOKENS,
        tracker=UsageTracker.for_model(gateway.model),
    )

    history_file = args.history or settings.HISTORY_FILE
    try:
        restored = agent.load(history_file)
    except HistoryError as exc:
        logger.warning(f"{exc} — starting a fresh conversation")
        restored = 0
    if restored:
        logger.info(f"[=] Continuing conversation ({restored} messages)")

    logger.info(f"Chatting with {gateway.model}.  Type /quit to exit, /stats for statistics.")
    try:
        _chat_loop(agent, history_file)
    except KeyboardInterrupt:
        print()
    finally:
        try:
            agent.save(history_file)
        except OSError as exc:
            logger.error(f"Could not save history: {exc}")


def _chat_loop(agent, history_file: str) -> None:
    from llm.errors import LLMError

    while True:
        try:
            line = input("\nYou: ").strip()
        except EOFError:
            print()
            return
        if not line:
            continue
        if line.startswith("/"):
            if not _handle_command(line, agent, history_file):
                return
            continue

        try:
            response = agent.ask(line)
        except LLMError as exc:
            logger.error(f"Request failed: {exc}")
            continue
        print(f"\nAssistant: {response.content}")
        logger.debug(
            f"{response.total_tokens} tokens, {response.elapsed:.2f}s, model={response.model}"
        )
        warning = agent.tracker.warning_message()
        if warning:
            logger.warning(warning)


def _add_window_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--compression-window", type=int, help="Messages per summary block")
    p.add_argument("--recent-window", type=int, help="Newest messages kept verbatim")


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="ctx",
        description="Chat with an LLM while compressing older context into summaries",
    )
    sub = parser.add_subparsers(dest="command", help="Available commands")

    p_chat = sub.add_parser("chat", help="Interactive chat with context compression")
    _add_window_args(p_chat)
    p_chat.add_argument("--history", help="History file (default: HISTORY_FILE)")

    p_demo = sub.add_parser("demo", help="Compare a long dialog with and without compression")
    _add_window_args(p_demo)

    sub.add_parser("models", help="Print model context limits and prices")

    args = parser.parse_args(argv)

    from settings import settings
    _configure_logging(settings.LOG_LEVEL)

    if args.command == "chat":
        cmd_chat(args)
    elif args.command == "demo":
        cmd_demo(args)
    elif args.command == "models":
        cmd_models(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
