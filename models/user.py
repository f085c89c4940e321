from sqlalchemy import Column, BigInteger, String
from models.base import Base


class User(Base):
    """
    Destination table for imported user rows.

    Design Decisions:
    - id comes from the source file and is never generated here
    - saving is an upsert keyed on id, so re-importing a file overwrites
      rows instead of duplicating them
    - every other attribute is kept as the raw (transformed) string
    """
    __tablename__ = "tbl_users"

    id = Column(BigInteger, primary_key=True, autoincrement=False)

    user_id = Column(String(100), nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    gender = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(100), nullable=True)
    date_of_birth = Column(String(50), nullable=True)
    job_title = Column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<User id={self.id} {self.first_name} {self.last_name}>"
