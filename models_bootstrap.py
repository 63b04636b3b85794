# models_bootstrap.py
from user import models as _user_models
from thanks import models as _thanks_models
