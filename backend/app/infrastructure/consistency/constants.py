"""
일관성(Consistency) 산출 상수.
상태 등급 기준, 요일 이름, 빈도별 기본 요일을 한 곳에서 관리한다.
"""
# 상태 등급 기본 기준(%). 설정 파일(status_tiers.json)로 변경 가능
ON_TRACK_MIN_PERCENTAGE = 70
NEEDS_ATTENTION_MIN_PERCENTAGE = 40

# date.weekday() 인덱스 순서 (월=0 ... 일=6)
WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY, SUNDAY = range(7)

WORKING_DAYS = frozenset({MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY})
WEEKEND_DAYS = frozenset({SATURDAY, SUNDAY})

# scheduled_days가 비어 있을 때의 기본 요일
DEFAULT_WEEKLY_DAYS = frozenset({MONDAY})
DEFAULT_THREE_PER_WEEK_DAYS = frozenset({MONDAY, WEDNESDAY, FRIDAY})

# 챌린지 참가 상태 중 집계에서 제외되는 값
PARTICIPATION_LEFT = "left"

# 연속 달성 지표
# 최근 GRACE_WINDOW_DAYS 발생일 중 완료 수 (하루쯤 놓쳐도 끊기지 않는 유예 연속)
GRACE_WINDOW_DAYS = 14
# 모멘텀: 최근 발생일일수록 가중치가 큰 지수 감쇠 평균
MOMENTUM_LOOKBACK_DAYS = 7
MOMENTUM_DECAY = "0.85"
# 직전 구간 대비 점수 차가 이 값을 넘으면 up/down
MOMENTUM_TREND_DELTA = 5

# 일별 추세 기본/최대 일수
DEFAULT_TREND_DAYS = 30
MAX_TREND_DAYS = 365
