from typing import List

def split_keywords(query: str) -> List[str]:
    """空白区切りのキーワード (小文字化済み)。空白だけなら空リスト"""
    return query.lower().split()
