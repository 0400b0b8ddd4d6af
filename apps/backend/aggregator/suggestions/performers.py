"""Built-in performer name table, most searched first."""

from __future__ import annotations

from typing import List

from aggregator.suggestions.terms import unique_terms

PERFORMERS: List[str] = unique_terms([
    "mia khalifa", "lana rhoades", "riley reid", "abella danger", "angela white",
    "adriana chechik", "emily willis", "gabbie carter", "eva elfie", "autumn falls",
    "elsa jean", "mia malkova", "kendra lust", "brandi love", "lisa ann",
    "nicole aniston", "alexis texas", "madison ivy", "asa akira", "sasha grey",
    "jenna jameson", "christy mack", "dani daniels", "lexi belle", "kagney linn karter",
    "phoenix marie", "keisha grey", "valentina nappi", "gianna michaels", "sara jay",
    "alexis fawx", "julia ann", "syren de mer", "cory chase", "cherie deville",
    "india summer", "reagan foxx", "dee williams", "kit mercer", "london river",
    "lena paul", "violet myers", "skylar vox", "natasha nice", "kenzie reeves",
    "gina valentina", "karlee grey", "jill kassidy", "gia derza", "maya bijou",
    "jane wilde", "vina sky", "kira noir", "ana foxxx", "daya knight",
    "kendra sunderland", "blair williams", "jessa rhodes", "carter cruise", "aj applegate",
    "kelsi monroe", "anikka albrite", "remy lacroix", "tori black", "kayden kross",
    "jesse jane", "stoya", "leah gotti", "peta jensen", "anissa kate",
    "aletta ocean", "jasmine jae", "johnny sins", "manuel ferrara", "xander corvus",
    "keiran lee", "ramon nomar", "mick blue", "markus dupree", "danny d",
    "brooklyn chase", "silvia saige", "mercedes carrera", "richelle ryan", "ryan keely",
    "pristine edge", "bridgette b", "ariella ferrera", "ava addams", "nikki benz",
    "jewels jade", "tanya tate", "rachael cavalli", "charlee chase", "esperanza gomez",
    "canela skin", "katana kombat", "sophia leone", "aaliyah hadid", "luna star",
    "rose monroe", "kitty caprice", "lela star", "marica hase", "alina li",
    "cindy starfall", "jade kush", "kendra spade", "morgan lee", "mia li",
    "rae lil black", "polly pons", "hitomi tanaka", "eimi fukada", "yua mikami",
    "tia tanaka", "skin diamond", "anya ivy", "teanna trump", "harley dean",
    "sarah banks", "nicole doshi", "vicki chase", "cassie del isla", "penny barber",
    "joanna angel", "arabelle raphael", "siri dahl", "katrina jade", "jynx maze",
])

POPULAR_PERFORMER_LIMIT = 20


def popular_performers(count: int) -> List[str]:
    return PERFORMERS[:max(0, min(count, POPULAR_PERFORMER_LIMIT))]
