from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# BIGINT autoincrement on MySQL, INTEGER PRIMARY KEY rowid on SQLite
BigIntId = BigInteger().with_variant(Integer, "sqlite")
