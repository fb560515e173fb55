import logging
import argparse
from datetime import date
from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import sessionmaker
from dotenv import load_dotenv

from portal.config import Config
from portal.database import make_engine
from portal import models  # noqa: F401 (registers the mappers)
from portal.models.subject import Subject
from portal import billing

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')


def target_due_date(today: date, month=None, year=None, day=None) -> date:
    """
    Due date for the run: ``day`` of the given month/year, or of the month
    after ``today`` when none is given.
    """
    day = day or Config.DEFAULT_DUE_DAY
    if month and year:
        return date(year, month, day)
    next_month = today + relativedelta(months=1)
    return date(next_month.year, next_month.month, day)


def generate_dues(argv=None):
    """
    Bills every active subject with a fee: one due per enrolled student.
    Defaults to next month; --month and --year force a given period.
    """
    parser = argparse.ArgumentParser(description='Subject dues generator')
    parser.add_argument('--month', type=int, help='Reference month (1-12)')
    parser.add_argument('--year', type=int, help='Reference year (e.g. 2025)')
    parser.add_argument('--subject', help='Only bill the subject with this code')
    args = parser.parse_args(argv)

    load_dotenv()

    today = date.today()
    try:
        due_date = target_due_date(today, args.month, args.year)
    except ValueError:
        logging.error("Invalid date given in the parameters.")
        return None
    logging.info(f"Generating dues for {due_date.strftime('%m/%Y')} (due {due_date})")

    engine = make_engine(Config.database_url())
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = SessionLocal()

    created = 0
    try:
        query = db.query(Subject).filter(Subject.is_active == True, Subject.fee_amount > 0)
        if args.subject:
            query = query.filter(Subject.code == args.subject)
        subjects = query.all()
        logging.info(f"Found {len(subjects)} active subject(s) with a fee.")

        for subject in subjects:
            created += len(billing.bill_subject(db, subject.id, due_date=due_date, as_of=today))
    except Exception as e:
        logging.error(f"Error while generating dues: {e}")
        db.rollback()
        raise
    finally:
        db.close()

    if created:
        logging.info(f"SUCCESS: {created} new due(s) generated.")
    else:
        logging.info(f"No new dues needed for {due_date.strftime('%m/%Y')} (all already exist).")
    return created


if __name__ == "__main__":
    generate_dues()
