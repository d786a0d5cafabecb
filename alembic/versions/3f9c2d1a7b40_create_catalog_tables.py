"""Create authors, books and borrowings tables

Revision ID: 3f9c2d1a7b40
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c2d1a7b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

borrowing_status = sa.Enum('BORROWED', 'OVERDUE', 'RETURNED', name='borrowing_status')


def upgrade() -> None:
    op.create_table('authors',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('first_name', sa.String(length=255), nullable=False, comment="Author's first name"),
        sa.Column('last_name', sa.String(length=255), nullable=False, comment="Author's last name"),
        sa.Column('date_of_birth', sa.Date(), nullable=True, comment='Date of birth'),
        sa.Column('nationality', sa.String(length=100), nullable=True, comment='Nationality'),
        sa.Column('biography', sa.Text(), nullable=True, comment='Author biography'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='When the author record was created'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='When the author record was last updated'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_authors_last_name'), 'authors', ['last_name'], unique=False)

    op.create_table('books',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False, comment='Book title'),
        sa.Column('isbn', sa.String(length=20), nullable=False, comment='Normalized International Standard Book Number'),
        sa.Column('author_id', sa.Integer(), nullable=False, comment='Author of the book'),
        sa.Column('published_year', sa.Integer(), nullable=False, comment='Year the book was published'),
        sa.Column('genre', sa.String(length=100), nullable=True, comment='Genre label'),
        sa.Column('available', sa.Boolean(), server_default=sa.true(), nullable=False, comment='Whether the book can currently be borrowed'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['author_id'], ['authors.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_books_title'), 'books', ['title'], unique=False)
    op.create_index(op.f('ix_books_isbn'), 'books', ['isbn'], unique=True)
    op.create_index(op.f('ix_books_author_id'), 'books', ['author_id'], unique=False)
    op.create_index(op.f('ix_books_genre'), 'books', ['genre'], unique=False)
    op.create_index(op.f('ix_books_available'), 'books', ['available'], unique=False)

    op.create_table('borrowings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('book_id', sa.Integer(), nullable=True, comment='Borrowed book'),
        sa.Column('borrower_name', sa.String(length=255), nullable=False, comment='Name of the borrower'),
        sa.Column('borrower_email', sa.String(length=255), nullable=False, comment='Email identifying the borrower'),
        sa.Column('borrowed_date', sa.Date(), nullable=False, comment='Day the loan started'),
        sa.Column('due_date', sa.Date(), nullable=False, comment='Last day before the loan is overdue'),
        sa.Column('returned_date', sa.Date(), nullable=True, comment='Day the book came back'),
        sa.Column('status', borrowing_status, nullable=False, comment='Loan state'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['book_id'], ['books.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_borrowings_book_id'), 'borrowings', ['book_id'], unique=False)
    op.create_index(op.f('ix_borrowings_borrower_email'), 'borrowings', ['borrower_email'], unique=False)
    op.create_index(op.f('ix_borrowings_due_date'), 'borrowings', ['due_date'], unique=False)
    op.create_index(op.f('ix_borrowings_status'), 'borrowings', ['status'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_borrowings_status'), table_name='borrowings')
    op.drop_index(op.f('ix_borrowings_due_date'), table_name='borrowings')
    op.drop_index(op.f('ix_borrowings_borrower_email'), table_name='borrowings')
    op.drop_index(op.f('ix_borrowings_book_id'), table_name='borrowings')
    op.drop_table('borrowings')
    borrowing_status.drop(op.get_bind(), checkfirst=True)

    op.drop_index(op.f('ix_books_available'), table_name='books')
    op.drop_index(op.f('ix_books_genre'), table_name='books')
    op.drop_index(op.f('ix_books_author_id'), table_name='books')
    op.drop_index(op.f('ix_books_isbn'), table_name='books')
    op.drop_index(op.f('ix_books_title'), table_name='books')
    op.drop_table('books')

    op.drop_index(op.f('ix_authors_last_name'), table_name='authors')
    op.drop_table('authors')
