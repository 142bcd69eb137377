# Databricks notebook source
# SCD2 Merge Framework - Notebook Installation Cell
# Add this as the FIRST cell in your Databricks notebooks

# Install the framework from the uploaded wheel
%pip install /Workspace/Users/your.email@example.com/wheels/scd2_merge_framework-0.1.0-py3-none-any.whl

# Restart Python to use the newly installed package
dbutils.library.restartPython()

# COMMAND ----------

# Imports and demo tables
import logging

from scd2merge import ConfigLoader, RuntimeOptions, Scd2MergeGenerator

logging.basicConfig(level=logging.INFO)

username = "your.email@example.com"  # replace with your workspace user path
CONFIG_PATH = f"/Workspace/Users/{username}/scd2_demo/configs"
dbutils.fs.mkdirs(CONFIG_PATH)

spark.sql("CREATE DATABASE IF NOT EXISTS demo_silver")
spark.sql("CREATE DATABASE IF NOT EXISTS demo_gold")

print("Cleaning up previous demo...")
spark.sql("DROP TABLE IF EXISTS demo_silver.customers")
spark.sql("DROP TABLE IF EXISTS demo_gold.dim_customer")

spark.sql("""
    CREATE TABLE demo_silver.customers (
        customer_id BIGINT,
        name STRING,
        city STRING,
        valid_from TIMESTAMP,
        valid_to TIMESTAMP
    ) USING DELTA
""")
spark.sql("CREATE TABLE demo_gold.dim_customer LIKE demo_silver.customers")

print("✓ Demo tables created")

# COMMAND ----------

# Define Configuration
dim_customer_yaml = """project_id: {{ catalog }}
target_dataset_id: demo_gold
target_table_name: dim_customer
source_dataset_id: demo_silver
source_table_name: customers
primary_keys: customer_id
start_date_column: valid_from
end_date_column: valid_to
"""

with open(f"{CONFIG_PATH}/dim_customer.yml", "w") as f:
    f.write(dim_customer_yaml)

catalog = spark.sql("SELECT current_catalog()").collect()[0][0]
config = ConfigLoader(env_vars={"catalog": catalog}).load_config(
    f"{CONFIG_PATH}/dim_customer.yml"
)
generator = Scd2MergeGenerator(runtime_options=RuntimeOptions(spark_session=spark))

print(generator.generate(config).text)

# COMMAND ----------

# Day 1: initial load, both customers are new
spark.sql("""
    INSERT INTO demo_silver.customers VALUES
        (1, 'Alice', 'Oslo', NULL, NULL),
        (2, 'Bob', NULL, NULL, NULL)
""")
print(generator.run(config))
display(spark.table("demo_gold.dim_customer").orderBy("customer_id", "valid_from"))

# COMMAND ----------

# Day 2: Alice changes her name, Bob is unchanged
spark.sql("UPDATE demo_silver.customers SET name = 'Alicia' WHERE customer_id = 1")
print(generator.run(config))

# Re-running the same batch changes nothing
print(generator.run(config))
display(spark.table("demo_gold.dim_customer").orderBy("customer_id", "valid_from"))
