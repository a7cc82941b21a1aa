"""
Assessment question bank.

Thirty multiple-choice questions across the eight business engines. Every
option carries its own points; the best answer to each question is worth 10.
"""
from dataclasses import dataclass
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class Engine:
    id: str
    name: str
    subtitle: str
    max_score: int


@dataclass(frozen=True)
class Option:
    value: str
    label: str
    points: int


@dataclass(frozen=True)
class Question:
    id: str
    engine: str
    text: str
    options: Tuple[Option, ...]

    @property
    def max_points(self) -> int:
        return max(option.points for option in self.options)

    def option(self, value: str) -> Option:
        for option in self.options:
            if option.value == value:
                return option
        raise KeyError(value)


ENGINES: List[Engine] = [
    Engine("attract", "Attract Engine", "Marketing & Lead Generation", 40),
    Engine("convert", "Convert Engine", "Sales & Closing", 40),
    Engine("deliver", "Deliver Engine", "Client Experience & Results", 40),
    Engine("people", "People Engine", "Team, Culture, Hiring", 40),
    Engine("systems", "Systems Engine", "Operations, Process, Tech", 40),
    Engine("finance", "Finance Engine", "Money, Metrics, Wealth", 30),
    Engine("leadership", "Leadership Engine", "Vision, Strategy, You", 30),
    Engine("time", "Time Engine", "Freedom, Productivity, Leverage", 40),
]

ENGINES_BY_ID: Dict[str, Engine] = {engine.id: engine for engine in ENGINES}

TOTAL_MAX_SCORE = sum(engine.max_score for engine in ENGINES)


def _q(qid: str, engine: str, text: str, *options: Tuple[str, str, int]) -> Question:
    return Question(qid, engine, text, tuple(Option(*o) for o in options))


QUESTIONS: List[Question] = [
    # Attract
    _q("q1", "attract", "How many qualified leads do you generate monthly?",
       ("under_20", "Under 20 leads or don't track", 2),
       ("20_50", "20-50 leads", 5),
       ("50_100", "50-100 leads", 8),
       ("over_100", "100+ leads", 10)),
    _q("q2", "attract", "How many reliable marketing channels generate leads?",
       ("none", "No consistent channels", 0),
       ("1_2", "1-2 inconsistent sources", 3),
       ("3_4", "3-4 regular sources", 7),
       ("5_plus", "5+ systematic channels", 10)),
    _q("q3", "attract", "How sophisticated is your lead generation system?",
       ("adhoc", "Ad hoc/inconsistent", 0),
       ("track_no_nurture", "Track leads but no nurture system", 3),
       ("crm_nurture", "Have CRM + email nurture sequences", 7),
       ("full_automation", "Full marketing automation with attribution", 10)),
    _q("q4", "attract", "How clear is your target market and ideal customer?",
       ("anyone", "Serve anyone who will pay", 0),
       ("general", "General target market defined", 3),
       ("specific", "Specific ideal customer profile", 7),
       ("laser_focused", "Laser-focused with clear differentiation", 10)),

    # Convert
    _q("q5", "convert", "What's your lead-to-customer conversion rate?",
       ("under_15", "Under 15% or don't track", 2),
       ("15_25", "15-25%", 5),
       ("25_40", "25-40%", 8),
       ("over_40", "Over 40%", 10)),
    _q("q6", "convert", "How long is your average sales cycle?",
       ("dont_know", "Don't know/varies wildly", 0),
       ("over_6months", "Over 6 months (long, complex)", 3),
       ("1_6months", "1-6 months (moderate)", 6),
       ("under_1month", "Under 1 month (efficient)", 8),
       ("same_day", "Same day/week (transactional)", 10)),
    _q("q7", "convert", "How effective is your sales process?",
       ("no_process", "No formal sales process", 0),
       ("basic", "Basic process, inconsistent follow-up", 3),
       ("documented", "Documented process with objection handling", 7),
       ("optimized", "Optimized process with upsells and tracking", 10)),
    _q("q8", "convert", "Do you have a sustainable competitive advantage?",
       ("price_only", "Compete mainly on price", 0),
       ("some_differentiation", "Some differentiation", 3),
       ("clear_value", "Clear unique value proposition", 7),
       ("dominant", "Dominant position with defensible moats", 10)),

    # Deliver
    _q("q9", "deliver", "What percentage of customers are delighted with your delivery?",
       ("under_60", "Under 60% or don't know", 0),
       ("60_75", "60-75%", 3),
       ("75_90", "75-90%", 7),
       ("over_90", "Over 90%", 10)),
    _q("q10", "deliver", "How systematized is your customer experience?",
       ("wing_it", "Wing it, reactive service", 0),
       ("basic_onboarding", "Basic onboarding process", 3),
       ("mapped_journey", "Mapped customer journey with touchpoints", 7),
       ("measure_improve", "Systematically measure and improve NPS", 10)),
    _q("q11", "deliver", "What percentage of your revenue comes from repeat customers?",
       ("dont_know", "I don't know", 0),
       ("under_20", "Under 20% (mostly transactional)", 2),
       ("20_40", "20-40% (some repeat business)", 5),
       ("40_60", "40-60% (good retention)", 8),
       ("over_60", "Over 60% (strong loyalty)", 10)),
    _q("q12", "deliver", "Do you systematically collect and act on customer feedback?",
       ("rarely", "Rarely or never collect feedback", 0),
       ("occasional", "Occasionally ask for feedback", 3),
       ("regular_some", "Regular surveys, take some action", 7),
       ("systematic", "Systematic NPS tracking with action plans", 10)),

    # People
    _q("q13", "people", "How effectively is your team structured and operating?",
       ("solo_struggling", "Solo operator - struggling with capacity", 2),
       ("small_confusion", "Small team - some role confusion", 4),
       ("clear_delegation", "Clear roles with effective delegation", 7),
       ("well_structured", "Well-structured with strong performance", 9),
       ("exceptional", "Exceptional team with clear accountability", 10)),
    _q("q14", "people", "How strong is your team culture?",
       ("struggling", "Struggling with people issues", 0),
       ("adequate", "Adequate team, developing culture", 3),
       ("good", "Good team, positive culture", 7),
       ("exceptional", "A-players with exceptional culture", 10)),
    _q("q15", "people", "How strategic is your approach to talent?",
       ("reactive", "Reactive hiring when desperate", 0),
       ("basic", "Basic hiring process", 3),
       ("good", "Good hiring with defined criteria", 7),
       ("systematic", "Systematic recruitment of A-players", 10)),
    _q("q16", "people", "How well do you develop and retain your team?",
       ("high_turnover", "High turnover, no development programs", 0),
       ("some_training", "Some training, moderate retention", 3),
       ("regular_training", "Regular training, good retention", 7),
       ("systematic", "Systematic development, great retention", 10)),

    # Systems
    _q("q17", "systems", "How comprehensive is your process documentation?",
       ("in_heads", "Most processes exist only in people's heads", 0),
       ("some_documented", "Some processes documented", 3),
       ("most_documented", "Most key processes documented", 7),
       ("all_optimized", "All processes documented and optimized", 10)),
    _q("q18", "systems", "How systematic is your business execution?",
       ("adhoc", "Ad hoc, reactive approach", 0),
       ("some_systems", "Some systems, inconsistent execution", 3),
       ("good_systems", "Good systems, reliable execution", 7),
       ("exceptional", "Exceptional systems and execution", 10)),
    _q("q19", "systems", "How effectively do you use technology and automation?",
       ("minimal", "Minimal tech, mostly manual processes", 0),
       ("basic", "Basic tools, limited automation", 3),
       ("good", "Good tech stack with some automation", 7),
       ("advanced", "Advanced automation and AI integration", 10)),
    _q("q20", "systems", "How well do you track business performance with metrics?",
       ("dont_track", "Don't track metrics systematically", 0),
       ("monthly", "Track basic metrics monthly", 3),
       ("weekly", "Weekly dashboard review", 7),
       ("daily", "Real-time dashboard reviewed daily", 10)),

    # Finance
    _q("q21", "finance", "How would you describe your cash flow situation?",
       ("stressed", "Constantly stressed about paying bills", 0),
       ("occasional_crunches", "Occasional cash crunches, tight months", 3),
       ("stable", "Generally stable, manageable fluctuations", 7),
       ("strong_reserves", "Strong reserves, never worry about cash", 10)),
    _q("q22", "finance", "What's your revenue growth rate over the past 12 months?",
       ("declining", "Declining revenue", 0),
       ("flat", "Flat or minimal growth (0-10%)", 3),
       ("moderate", "Moderate growth (10-25%)", 6),
       ("strong", "Strong growth (25-50%)", 8),
       ("rapid", "Rapid growth (50%+)", 10)),
    _q("q23", "finance", "How sophisticated is your financial management?",
       ("react_balance", "React to bank balance, no forecasting", 0),
       ("track_basic", "Track P&L monthly, basic budgeting", 3),
       ("forecast_variance", "13-week forecast, variance analysis", 7),
       ("rolling_profitability", "Rolling forecasts, full financial visibility", 10)),

    # Leadership
    _q("q24", "leadership", "How clear and compelling is your business vision?",
       ("very_unclear", "Very unclear - no defined direction", 0),
       ("somewhat_clear", "Somewhat clear - general idea only", 3),
       ("clear", "Clear - team understands it", 7),
       ("crystal_clear", "Crystal clear - guides all decisions", 10)),
    _q("q25", "leadership", "How dependent is the business on you personally?",
       ("completely", "Completely - stops without me", 0),
       ("very", "Very - needs me for most decisions", 3),
       ("somewhat", "Somewhat - can run for short periods", 7),
       ("minimal", "Minimal - runs well without me for weeks", 10)),
    _q("q26", "leadership", "Are you paying yourself a market-rate salary consistently?",
       ("no_rarely", "No - rarely take money out", 0),
       ("sometimes", "Sometimes - when cash flow allows", 3),
       ("yes_below", "Yes - regular salary below market", 5),
       ("yes_full", "Yes - full market-rate salary", 8),
       ("yes_plus_profit", "Yes - salary plus profit distributions", 10)),

    # Time
    _q("q27", "time", "How many hours per week do you currently work?",
       ("60_plus", "60+ hours per week", 0),
       ("50_60", "50-60 hours per week", 3),
       ("40_50", "40-50 hours per week", 7),
       ("under_40", "Under 40 hours per week", 10)),
    _q("q28", "time", "Can your business run successfully for 2+ weeks without you?",
       ("no_falls_apart", "No - it falls apart without me", 0),
       ("barely", "Barely - lots of issues arise", 3),
       ("mostly", "Mostly - some check-ins needed", 7),
       ("yes_smoothly", "Yes - runs smoothly without me", 10)),
    _q("q29", "time", "What percentage of your time is working ON (strategy) vs IN (doing the work)?",
       ("0_20_on", "0-20% ON strategy, 80-100% IN the work", 0),
       ("20_40_on", "20-40% ON strategy, 60-80% IN the work", 4),
       ("40_60_on", "40-60% ON strategy, 40-60% IN the work", 7),
       ("60_plus_on", "60%+ ON strategy, less than 40% IN the work", 10)),
    _q("q30", "time", "How predictable is your monthly revenue?",
       ("unpredictable", "Completely unpredictable - varies wildly", 0),
       ("somewhat_50", "Somewhat predictable - within 50%", 3),
       ("very_25", "Very predictable - within 25%", 7),
       ("extremely_recurring", "Extremely predictable - recurring revenue model", 10)),
]

QUESTIONS_BY_ID: Dict[str, Question] = {question.id: question for question in QUESTIONS}
