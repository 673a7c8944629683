"""Repository for transaction operations."""

import csv
import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import BinaryIO, Dict, List, Tuple

import pandas as pd
from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from components.account_book.models import AccountBook
from components.core.exceptions import NotFoundError
from components.transaction.models import Transaction, TransactionType
from components.transaction import schemas

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
CSV_COLUMNS = ("date", "amount", "type", "category", "description", "account_book_id")


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT)


class TransactionRepository:
    """Repository for transaction operations."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def _get_book(self, book_id: int, user_id: int) -> AccountBook:
        result = await self.session.execute(
            select(AccountBook).where(AccountBook.id == book_id, AccountBook.user_id == user_id)
        )
        book = result.scalar_one_or_none()
        if book is None:
            raise NotFoundError(f"Account book {book_id} not found")
        return book

    async def create(self, user_id: int, txn: schemas.TransactionCreate) -> Transaction:
        """Create a new transaction in one of the user's account books."""
        book = await self._get_book(txn.account_book_id, user_id)
        db_txn = Transaction(user_id=user_id, account_book_name=book.name, **txn.model_dump())
        self.session.add(db_txn)
        await self.session.commit()
        await self.session.refresh(db_txn)
        return db_txn

    async def get(self, txn_id: int, user_id: int) -> Transaction:
        """Get transaction by ID or raise NotFoundError."""
        result = await self.session.execute(
            select(Transaction).where(Transaction.id == txn_id, Transaction.user_id == user_id)
        )
        txn = result.scalar_one_or_none()
        if txn is None:
            raise NotFoundError(f"Transaction {txn_id} not found")
        return txn

    async def get_all(self, user_id: int) -> List[Transaction]:
        """Get all transactions of the user, newest first."""
        result = await self.session.execute(
            select(Transaction)
            .where(Transaction.user_id == user_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        )
        return list(result.scalars().all())

    async def update(self, txn_id: int, user_id: int, txn: schemas.TransactionCreate) -> Transaction:
        """Update transaction by ID."""
        db_txn = await self.get(txn_id, user_id)
        book = await self._get_book(txn.account_book_id, user_id)
        for key, value in txn.model_dump().items():
            setattr(db_txn, key, value)
        db_txn.account_book_name = book.name
        await self.session.commit()
        await self.session.refresh(db_txn)
        return db_txn

    async def delete(self, txn_id: int, user_id: int) -> None:
        """Delete transaction by ID."""
        db_txn = await self.get(txn_id, user_id)
        await self.session.delete(db_txn)
        await self.session.commit()

    async def get_account_book_summary(self, user_id: int) -> List[schemas.AccountBookSummary]:
        """Income and expense totals per account book, books without transactions included."""
        income = func.coalesce(
            func.sum(case((Transaction.type == TransactionType.INCOME, Transaction.amount), else_=0)), 0
        )
        expense = func.coalesce(
            func.sum(case((Transaction.type == TransactionType.EXPENSE, Transaction.amount), else_=0)), 0
        )
        result = await self.session.execute(
            select(AccountBook.name, income, expense)
            .outerjoin(Transaction, Transaction.account_book_id == AccountBook.id)
            .where(AccountBook.user_id == user_id)
            .group_by(AccountBook.id, AccountBook.name)
            .order_by(AccountBook.name)
        )
        return [
            schemas.AccountBookSummary(
                account_book_name=name,
                total_income=_money(total_income),
                total_expense=_money(total_expense),
            )
            for name, total_income, total_expense in result.all()
        ]

    async def get_monthly_summary(self, user_id: int) -> List[schemas.MonthlySummary]:
        """Income and expense totals per calendar month."""
        result = await self.session.execute(
            select(Transaction.date, Transaction.type, Transaction.amount)
            .where(Transaction.user_id == user_id)
        )
        rows = result.all()
        if not rows:
            return []

        df = pd.DataFrame(rows, columns=["date", "type", "amount"])
        df["month"] = pd.to_datetime(df["date"]).dt.strftime("%Y-%m")
        df["type"] = df["type"].map(lambda t: TransactionType(t).value)
        df["amount"] = df["amount"].map(lambda a: Decimal(str(a)))
        totals = df.groupby(["month", "type"])["amount"].sum()

        summaries = []
        for month in sorted(df["month"].unique()):
            summaries.append(schemas.MonthlySummary(
                month=month,
                total_income=_money(totals.get((month, TransactionType.INCOME.value), 0)),
                total_expense=_money(totals.get((month, TransactionType.EXPENSE.value), 0)),
            ))
        return summaries

    async def get_expense_categories(self, user_id: int, limit: int = None) -> List[schemas.CategoryTotal]:
        """Expense totals per category, largest first."""
        total = func.sum(Transaction.amount).label("total")
        query = (
            select(Transaction.category, total)
            .where(Transaction.user_id == user_id, Transaction.type == TransactionType.EXPENSE)
            .group_by(Transaction.category)
            .order_by(total.desc())
        )
        if limit:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return [
            schemas.CategoryTotal(category=category, total=_money(amount))
            for category, amount in result.all()
        ]

    async def get_category_ratio(self, user_id: int) -> List[schemas.CategoryRatio]:
        """Expense totals per category with their percentage of all expenses."""
        categories = await self.get_expense_categories(user_id)
        grand_total = sum((c.total for c in categories), Decimal("0"))
        return [
            schemas.CategoryRatio(
                category=c.category,
                total=c.total,
                percentage=float(c.total / grand_total * 100) if grand_total > 0 else 0.0,
            )
            for c in categories
        ]

    async def upload_transactions_from_csv(
        self, user_id: int, file_content: BinaryIO
    ) -> Tuple[bool, str, List[Dict], int]:
        """
        Upload transactions from a tab separated CSV file.

        Args:
            user_id: Owner of the transactions
            file_content: The CSV file content

        Returns:
            Tuple containing:
            - Success status (bool)
            - Message (str)
            - List of errors if any (List[Dict])
            - Number of imported rows (int)
        """
        errors = []

        try:
            content_str = file_content.read().decode("utf-8")
        except UnicodeDecodeError:
            return False, "File must be UTF-8 encoded", [], 0

        csv_rows = list(csv.DictReader(content_str.splitlines(), delimiter="\t"))
        if not csv_rows:
            return False, "CSV file is empty", [], 0
        if not all(column in csv_rows[0] for column in CSV_COLUMNS):
            return False, f"CSV file must contain {', '.join(CSV_COLUMNS)} columns", [], 0

        result = await self.session.execute(
            select(AccountBook).where(AccountBook.user_id == user_id)
        )
        books = {book.id: book.name for book in result.scalars().all()}

        parsed = []
        # Start at 2 to account for header row
        for row_num, row in enumerate(csv_rows, start=2):
            try:
                txn_date = date.fromisoformat(row["date"].strip())
            except (AttributeError, ValueError):
                errors.append({"row": row_num, "message": f"Invalid date: {row['date']}. Expected YYYY-MM-DD"})
                continue

            try:
                amount = Decimal(row["amount"].strip())
                if not amount.is_finite() or amount <= 0:
                    raise InvalidOperation
            except (AttributeError, InvalidOperation, ValueError):
                errors.append({"row": row_num, "message": f"Invalid amount: {row['amount']}"})
                continue

            try:
                txn_type = TransactionType((row["type"] or "").strip().lower())
            except ValueError:
                errors.append({"row": row_num, "message": f"Type must be income or expense, got {row['type']}"})
                continue

            category = (row["category"] or "").strip()
            if not category:
                errors.append({"row": row_num, "message": "Category cannot be empty"})
                continue

            try:
                book_id = int(row["account_book_id"])
            except (TypeError, ValueError):
                errors.append({"row": row_num, "message": f"Invalid account_book_id: {row['account_book_id']}"})
                continue
            if book_id not in books:
                errors.append({"row": row_num, "message": f"Account book {book_id} does not exist"})
                continue

            parsed.append(Transaction(
                user_id=user_id,
                account_book_id=book_id,
                account_book_name=books[book_id],
                amount=amount,
                category=category,
                description=(row["description"] or "").strip() or None,
                date=txn_date,
                type=txn_type,
            ))

        # If we have any errors, return them without committing
        if errors:
            return False, "Validation errors occurred", errors, 0

        self.session.add_all(parsed)
        await self.session.commit()
        logger.info("Imported %s transactions for user %s", len(parsed), user_id)
        return True, "Transactions uploaded successfully", [], len(parsed)
