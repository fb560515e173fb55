import logging
import argparse
from datetime import date, datetime
from sqlalchemy.orm import sessionmaker
from dotenv import load_dotenv

from portal.config import Config
from portal.database import make_engine
from portal import models  # noqa: F401 (registers the mappers)
from portal import store

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Marks lapsed pending dues as overdue')
    parser.add_argument('--as-of', help='Reference date YYYY-MM-DD (default: today)')
    return parser.parse_args(argv)


def run_sweep(argv=None):
    """
    Runs the overdue sweep once. Meant to be called daily by cron / the
    platform scheduler; running it again on the same day changes nothing.
    """
    args = parse_args(argv)

    load_dotenv()
    database_url = Config.database_url()

    if args.as_of:
        try:
            as_of = datetime.strptime(args.as_of, '%Y-%m-%d').date()
        except ValueError:
            logging.error(f"Invalid --as-of date: {args.as_of}")
            return None
    else:
        as_of = date.today()

    logging.info("Connecting to the database...")
    engine = make_engine(database_url)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = SessionLocal()

    try:
        count = store.sweep_overdue(db, as_of)
    except Exception as e:
        logging.error(f"Overdue sweep failed: {e}")
        db.rollback()
        raise
    finally:
        db.close()

    logging.info(f"DONE: {count} due(s) moved to overdue as of {as_of}.")
    return count


if __name__ == "__main__":
    run_sweep()
