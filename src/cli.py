import argparse
from datetime import datetime, timezone

from loguru import logger

from src.config import get_settings
from src.db.database import create_tables
from src.fetchers import get_default_fetchers
from src.notifications.formatter import format_start_time
from src.repositories import get_contest_repository, get_user_repository

settings = get_settings()


def init_database():
    """初始化資料庫"""
    create_tables()
    logger.info("Database initialized")


def update_contests():
    """立即執行一次比賽更新"""
    from src.scheduler.jobs import run_contest_aggregation

    repository = get_contest_repository()
    result = run_contest_aggregation(
        get_default_fetchers(), repository, datetime.now(timezone.utc)
    )
    logger.info(f"Result: {result}")
    return result


def list_contests():
    repository = get_contest_repository()
    for contest in repository.list_ordered_by_start():
        starts_at = format_start_time(contest.start_time, settings.display_timezone)
        print(f"{starts_at}  [{contest.platform.value}] {contest.name}")


def check_reminders():
    """手動執行一次提醒檢查"""
    from src.scheduler.runner import create_scheduler

    result = create_scheduler().tick()
    logger.info(f"Result: {result}")
    return result


def send_test(to: str):
    from src.notifications.mailer import send_test_email

    if send_test_email(to):
        logger.info(f"Test email sent to {to}")
    else:
        logger.error("Failed to send test email")


def send_test_all():
    """寄測試信給所有使用者"""
    from src.notifications.dispatcher import ReminderDispatcher
    from src.scheduler.jobs import run_test_email_broadcast

    result = run_test_email_broadcast(get_user_repository(), ReminderDispatcher())
    logger.info(f"Result: {result}")
    return result


def main():
    parser = argparse.ArgumentParser(description="Contest Alert CLI")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init command
    subparsers.add_parser("init", help="Initialize database")

    # update-contests command
    subparsers.add_parser("update-contests", help="Fetch contests and replace stored set")

    # list-contests command
    subparsers.add_parser("list-contests", help="List stored contests")

    # check-reminders command
    subparsers.add_parser("check-reminders", help="Run one reminder tick now")

    # test-email command
    test_parser = subparsers.add_parser("test-email", help="Send a test email")
    test_parser.add_argument("to", help="Recipient address")

    # test-email-all command
    subparsers.add_parser("test-email-all", help="Send a test email to every user")

    # serve command
    subparsers.add_parser("serve", help="Start API server and scheduler")

    args = parser.parse_args()

    if args.command == "init":
        init_database()
    elif args.command == "update-contests":
        update_contests()
    elif args.command == "list-contests":
        list_contests()
    elif args.command == "check-reminders":
        check_reminders()
    elif args.command == "test-email":
        send_test(args.to)
    elif args.command == "test-email-all":
        send_test_all()
    elif args.command == "serve":
        import uvicorn

        uvicorn.run(
            "src.main:app",
            host=settings.api_host,
            port=settings.api_port,
            reload=settings.debug,
        )
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
