import logging

from minichess.config import CONFIG


def configure_logging(level: str = None):
    logging.basicConfig(
        level=getattr(logging, (level or CONFIG.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def format_search_info(d, score, nodes, elapsed, best_move, mate_score):
    move_str = str(best_move) if best_move else "-"
    nps = int(nodes / elapsed) if elapsed > 0 else 0

    if abs(score) >= mate_score - 100:
        plies = int(mate_score - abs(score))
        score_str = f"mate {plies if score > 0 else -plies}"
    else:
        score_str = f"score {score:.2f}"

    return f"info depth {d} {score_str} nodes {nodes} nps {nps} time {int(elapsed * 1000)} pv {move_str}"
