from typing import List

# "孙三" and "李四" appear twice so the duplicate check has something to report.
MOCK_ROSTER: List[str] = [
    "赵一",
    "钱二",
    "孙三",
    "李四",
    "周五",
    "吴六",
    "郑七",
    "王八",
    "冯九",
    "陈十",
    "诸葛亮",
    "曹操",
    "刘备",
    "孙权",
    "关羽",
    "张飞",
    "赵云",
    "马超",
    "黄忠",
    "魏延",
    "孙三",
    "李四",
]


def mock_roster_text() -> str:
    return "\n".join(MOCK_ROSTER)
