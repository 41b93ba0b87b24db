"""
Command line entry point: feed a corpus into a chain database and print
generated sentences.
"""
import argparse
import asyncio
import sys
from typing import List, Optional

from parrotchain.config import settings
from parrotchain.services.errors import MarkovError, NoAnchorMatchError
from parrotchain.services.ingest import feed_file
from parrotchain.services.markov import ChainConfig, ChainModel, MarkovType
from parrotchain.services.store import create_store
from parrotchain.utils.logger import setup_logger

logger = setup_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Feed and sample a Markov chain")

    parser.add_argument("corpus", nargs="?", default=None,
                        help="Text file with one utterance per line to feed first")
    parser.add_argument("--db", type=str, default=settings.DATABASE_URL,
                        help="Database URL (sqlite:///path.db or memory://)")
    parser.add_argument("--markov-type", type=str, default=settings.MARKOV_TYPE,
                        choices=[t.value for t in MarkovType], help="Chain order mode")
    parser.add_argument("--threshold", type=int, default=settings.HYBRID_THRESHOLD,
                        help="Hybrid backoff threshold")
    parser.add_argument("--count", type=int, default=1, help="Number of sentences to print")
    parser.add_argument("--reply", type=str, default=None,
                        help="Print replies anchored on this text instead of free sentences")
    parser.add_argument("--no-progress", action="store_true", help="Hide the progress bar")

    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> List[str]:
    store = create_store(args.db)
    try:
        config = ChainConfig.from_settings(
            settings,
            markov_type=args.markov_type,
            hybrid_threshold=args.threshold,
        )
        model = await ChainModel.create(store, config)

        if args.corpus:
            await feed_file(args.corpus, model, progress=not args.no_progress)

        sentences = []
        for _ in range(args.count):
            if args.reply is not None:
                sentences.append(await model.generate_reply(args.reply))
            else:
                sentences.append(await model.generate())
        return sentences
    finally:
        await store.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        sentences = asyncio.run(run(args))
    except NoAnchorMatchError as e:
        print(f"Could not reply: {e}", file=sys.stderr)
        return 2
    except (MarkovError, OSError) as e:
        logger.error(f"[ERR] {e}")
        print(f"Could not feed and generate: {e}", file=sys.stderr)
        return 1

    for sentence in sentences:
        print(sentence)
    return 0


if __name__ == "__main__":
    sys.exit(main())
