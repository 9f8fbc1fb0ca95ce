from django.db import models


class Category(models.TextChoices):
    BIRD = 'Bird', 'Bird'
    CAGE = 'Cage', 'Cage'
    PAIR = 'Pair', 'Pair'
    BREEDING_RECORD = 'BreedingRecord', 'Breeding record'
    NOTE_REMINDER = 'NoteReminder', 'Note / reminder'
    TRANSACTION = 'Transaction', 'Transaction'
    PERMIT = 'Permit', 'Permit'
    CUSTOM_SPECIES = 'CustomSpecies', 'Custom species'
    CUSTOM_MUTATION = 'CustomMutation', 'Custom mutation'


class Sex(models.TextChoices):
    MALE = 'male', 'Male'
    FEMALE = 'female', 'Female'
    UNSEXED = 'unsexed', 'Unsexed'


class BirdStatus(models.TextChoices):
    AVAILABLE = 'Available', 'Available'
    SOLD = 'Sold', 'Sold'
    DECEASED = 'Deceased', 'Deceased'
    HAND_REARING = 'Hand-rearing', 'Hand-rearing'


class EggStatus(models.TextChoices):
    LAID = 'Laid', 'Laid'
    HATCHED = 'Hatched', 'Hatched'
    INFERTILE = 'Infertile', 'Infertile'
    BROKEN = 'Broken', 'Broken'


class RecurrencePattern(models.TextChoices):
    DAILY = 'daily', 'Daily'
    WEEKLY = 'weekly', 'Weekly'
    MONTHLY = 'monthly', 'Monthly'
    NONE = 'none', 'None'


class TransactionType(models.TextChoices):
    INCOME = 'income', 'Income'
    EXPENSE = 'expense', 'Expense'


class Inheritance(models.TextChoices):
    AUTOSOMAL_RECESSIVE = 'Autosomal Recessive', 'Autosomal Recessive'
    AUTOSOMAL_DOMINANT = 'Autosomal Dominant', 'Autosomal Dominant'
    AUTOSOMAL_CODOMINANT = 'Autosomal Co-dominant', 'Autosomal Co-dominant'
    AUTOSOMAL_INCOMPLETE_DOMINANT = 'Autosomal Incomplete Dominant', 'Autosomal Incomplete Dominant'
    SEX_LINKED_RECESSIVE = 'Sex-Linked Recessive', 'Sex-Linked Recessive'
    SEX_LINKED_DOMINANT = 'Sex-Linked Dominant', 'Sex-Linked Dominant'
    SEX_LINKED_CODOMINANT = 'Sex-Linked Co-dominant', 'Sex-Linked Co-dominant'
    SEX_LINKED_INCOMPLETE_DOMINANT = 'Sex-Linked Incomplete Dominant', 'Sex-Linked Incomplete Dominant'
    POLYGENIC = 'Polygenic', 'Polygenic'
