"""redditpost entry point: walk and print the comment tree of a post."""

import argparse
import logging
import sys

from redditpost.core.config_manager import ConfigManager
from redditpost.core.exceptions import RedditPostError
from redditpost.core.logger import setup_logger
from redditpost.session import build_session

logger = logging.getLogger("redditpost")


def main(argv=None) -> int:
    """Print every comment of a post, indented by depth.

    Startup sequence:
    1. ConfigManager init (loads or creates settings.yaml)
    2. Logger init (reads log_level from config)
    3. Session creation (transport from reddit.* settings)
    4. Lazy comment walk

    Returns 1 if any step raises RedditPostError, including an unwritable
    settings directory.
    """
    parser = argparse.ArgumentParser(prog="redditpost")
    parser.add_argument("post_id", help="Reddit post id, e.g. 8xwlg")
    parser.add_argument("--limit", type=int, default=None,
                        help="comments per request (0 = server default)")
    args = parser.parse_args(argv)

    try:
        config = ConfigManager()
        setup_logger(
            log_level=config.get("app.log_level", "INFO"),
            mask_logs=config.get("security.mask_logs", True),
        )

        session = build_session(config)
        limit = args.limit if args.limit is not None else config.get("comments.limit_per_request", 0)

        post = session.get_post(args.post_id)
        print(f"{post.title} (r/{post.subreddit}, {post.num_comments} comments)")
        walk = post.enumerate_comment_tree(limit_per_request=limit)
        try:
            for comment in walk:
                print(f"{'  ' * comment.depth}{comment.author}: {comment.body}")
        except KeyboardInterrupt:
            walk.cancel()
            logger.info("Interrupted")
    except RedditPostError as e:
        logger.error(f"Failed to read post {args.post_id}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
