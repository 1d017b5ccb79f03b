# models_bootstrap.py
from user import models as _user_models
from workplace import models as _workplace_models
from shift import models as _shift_models
from exchange import models as _exchange_models
from report import models as _report_models
