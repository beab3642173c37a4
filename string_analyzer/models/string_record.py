from sqlalchemy import Column, String, Integer, Boolean, DateTime, JSON, Text
from sqlalchemy.dialects import mysql
from string_analyzer.database import Base

# MySQL DATETIME drops fractional seconds unless asked; listing orders by this column
CreatedAt = DateTime(timezone=True).with_variant(mysql.DATETIME(fsp=6), "mysql")


class StringAnalysis(Base):
    __tablename__ = "string_analyses"

    id = Column(String(64), primary_key=True, index=True)  # SHA-256 hash
    value = Column(Text, nullable=False)  # unique through the hash primary key
    length = Column(Integer, nullable=False)
    is_palindrome = Column(Boolean, nullable=False)
    unique_characters = Column(Integer, nullable=False)
    word_count = Column(Integer, nullable=False)
    sha256_hash = Column(String(64), nullable=False)
    character_frequency_map = Column(JSON, nullable=False)
    created_at = Column(CreatedAt, nullable=False, index=True)
